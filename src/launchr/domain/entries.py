"""Entry value objects produced by plugins and consumed by the matcher.

Pure value objects: no I/O, no framework dependencies. ``Entry.create``
is the validating constructor every plugin path goes through; plain
dataclass construction skips validation.
"""

from __future__ import annotations

import posixpath
import shlex
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .exceptions import InvalidEntry

ENTRY_FIELDS: frozenset[str] = frozenset(
    {"name", "exec", "search_terms", "children", "exec_flags"}
)
EXEC_FLAG_FIELDS: frozenset[str] = frozenset({"is_term", "should_fork"})


@dataclass(frozen=True)
class ExecFlags:
    """How a resolved command is run.

    ``is_term`` wraps the command in the configured terminal runner.
    ``should_fork`` keeps the launcher alive after the launch.
    """

    is_term: bool = False
    should_fork: bool = False

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> ExecFlags:
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise InvalidEntry(
                f"exec_flags must be a mapping, got {type(raw).__name__}"
            )
        unknown = set(raw) - EXEC_FLAG_FIELDS
        if unknown:
            raise InvalidEntry(
                f"unknown exec_flags field(s) {sorted(map(str, unknown))}; "
                f"allowed: {sorted(EXEC_FLAG_FIELDS)}"
            )
        values: dict[str, bool] = {}
        for key, value in raw.items():
            if not isinstance(value, bool):
                raise InvalidEntry(f"exec_flags.{key} must be a bool")
            values[key] = value
        return cls(**values)


@dataclass(frozen=True)
class Entry:
    """A launchable item, possibly a group of child entries."""

    name: str
    exec: str = ""
    search_terms: tuple[str, ...] = ()
    children: tuple[Entry, ...] = ()
    flags: ExecFlags = field(default_factory=ExecFlags)

    @property
    def is_group(self) -> bool:
        return not self.exec.strip() and bool(self.children)

    @classmethod
    def create(
        cls,
        *,
        name: str | None = None,
        exec: str | None = None,
        search_terms: Iterable[str] | None = None,
        children: Iterable[Entry] | None = None,
        exec_flags: Mapping[str, Any] | ExecFlags | None = None,
    ) -> Entry:
        """Build a validated entry.

        Raises:
            InvalidEntry: empty name, empty exec without children, or a
                field of the wrong type.
        """
        command = "" if exec is None else exec
        if not isinstance(command, str):
            raise InvalidEntry(f"exec must be a string, got {type(command).__name__}")

        if name is None:
            name = exec_name(command)
        if not isinstance(name, str):
            raise InvalidEntry(f"name must be a string, got {type(name).__name__}")
        if not name.strip():
            raise InvalidEntry("entry name must not be empty")

        kids = _as_tuple(children, "children")
        for child in kids:
            if not isinstance(child, Entry):
                raise InvalidEntry(
                    f"children must be entries, got {type(child).__name__}"
                )
        if not command.strip() and not kids:
            raise InvalidEntry(
                f"entry {name!r} has an empty exec and no children"
            )

        terms = _as_tuple(search_terms, "search_terms")
        for term in terms:
            if not isinstance(term, str):
                raise InvalidEntry(
                    f"search_terms must be strings, got {type(term).__name__}"
                )
        if name not in terms:
            terms = (name, *terms)

        flags = (
            exec_flags
            if isinstance(exec_flags, ExecFlags)
            else ExecFlags.from_mapping(exec_flags)
        )
        return cls(
            name=name,
            exec=command,
            search_terms=terms,
            children=kids,
            flags=flags,
        )

    @classmethod
    def from_fields(cls, fields: Mapping[str, Any]) -> Entry:
        """Validate a raw field mapping (as written by plugin authors)."""
        unknown = set(fields) - ENTRY_FIELDS
        if unknown:
            raise InvalidEntry(
                f"unknown entry field(s) {sorted(map(str, unknown))}; "
                f"allowed: {sorted(ENTRY_FIELDS)}"
            )
        return cls.create(**fields)


def exec_name(command: str) -> str:
    """Basename of the binary a command string runs, or ``""``."""
    try:
        parts = shlex.split(command)
    except ValueError:
        parts = command.split()
    if not parts:
        return ""
    return posixpath.basename(parts[0]) or parts[0]


def _as_tuple(value: Any, field_name: str) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes, Mapping)):
        raise InvalidEntry(f"{field_name} must be a sequence")
    try:
        return tuple(value)
    except TypeError as e:
        raise InvalidEntry(f"{field_name} must be a sequence") from e
