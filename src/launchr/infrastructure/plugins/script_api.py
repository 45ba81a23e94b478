"""The globals a plugin script runs with: entry(), plugin(), capabilities."""

from __future__ import annotations

import builtins
import posixpath
import shlex
from collections.abc import Iterable, Mapping
from typing import Any

from launchr.domain.entries import ENTRY_FIELDS, Entry
from launchr.domain.exceptions import InvalidEntry, RegistrationError
from launchr.domain.plugins import PluginOutput
from launchr.domain.ports.capabilities import Capabilities

from .script_guard import restricted_import

_SAFE_BUILTINS: tuple[str, ...] = (
    # values and containers
    "bool", "int", "float", "str", "bytes", "list",
    "tuple", "dict", "set", "frozenset", "range", "slice", "object",
    # iteration and pure helpers
    "abs", "all", "any", "chr", "divmod", "enumerate", "filter", "hash", "isinstance",
    "issubclass", "iter", "len", "map", "max", "min", "next", "ord", "pow",
    "repr", "reversed", "round", "sorted", "sum", "zip", "callable",
    # exceptions scripts may raise or catch
    "Exception", "ArithmeticError", "AssertionError", "AttributeError", "IndexError",
    "KeyError", "LookupError", "NotImplementedError", "OSError", "RuntimeError",
    "StopIteration", "TypeError", "UnicodeDecodeError", "ValueError",
    "ZeroDivisionError", "FileNotFoundError", "IsADirectoryError",
    "NotADirectoryError", "PermissionError",
)

PLUGIN_FIELDS: frozenset[str] = frozenset({"name", "entries"})


class EntryDraft:
    """Mutable entry under construction inside a script.

    Scripts may keep editing a draft (append children, add search terms)
    until the script returns; drafts are validated and frozen at harvest.
    """

    __slots__ = ("name", "exec", "search_terms", "children", "exec_flags")

    def __init__(
        self,
        name: str | None = None,
        exec: str = "",
        search_terms: list[Any] | None = None,
        children: list[Any] | None = None,
        exec_flags: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.exec = exec
        self.search_terms = search_terms if search_terms is not None else []
        self.children = children if children is not None else []
        self.exec_flags = exec_flags if exec_flags is not None else {}

    def __repr__(self) -> str:
        return f"entry(name={self.name!r}, exec={self.exec!r}, children={len(self.children)})"


def make_entry(*args: Any, **fields: Any) -> EntryDraft:
    """Script-facing ``entry(...)``.

    Accepts an exec string, a field mapping, or keyword fields.
    """
    if len(args) > 1:
        raise InvalidEntry("entry() takes at most one positional argument")
    if args:
        (arg,) = args
        if isinstance(arg, str):
            if "exec" in fields:
                raise InvalidEntry("exec given both positionally and by keyword")
            fields = {"exec": arg, **fields}
        elif isinstance(arg, Mapping):
            fields = {**arg, **fields}
        else:
            raise InvalidEntry(
                f"entry() expects an exec string or a mapping, got {type(arg).__name__}"
            )

    unknown = set(fields) - ENTRY_FIELDS
    if unknown:
        raise InvalidEntry(
            f"unknown entry field(s) {sorted(map(str, unknown))}; "
            f"allowed: {sorted(ENTRY_FIELDS)}"
        )
    return EntryDraft(
        name=fields.get("name"),
        exec=fields.get("exec") or "",
        search_terms=_list_field(fields.get("search_terms"), "search_terms"),
        children=_list_field(fields.get("children"), "children"),
        exec_flags=_mapping_field(fields.get("exec_flags"), "exec_flags"),
    )


def freeze(raw: Any) -> Entry:
    """Validate a draft, mapping or entry into an immutable ``Entry``."""
    if isinstance(raw, Entry):
        return raw
    if isinstance(raw, Mapping):
        raw = make_entry(raw)
    if not isinstance(raw, EntryDraft):
        raise InvalidEntry(f"expected an entry, got {type(raw).__name__}")
    return Entry.create(
        name=raw.name,
        exec=raw.exec,
        search_terms=raw.search_terms,
        children=[freeze(child) for child in raw.children],
        exec_flags=raw.exec_flags,
    )


def _list_field(value: Any, field_name: str) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, Iterable):
        raise InvalidEntry(f"{field_name} must be a list")
    return list(value)


def _mapping_field(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidEntry(f"{field_name} must be a mapping")
    return dict(value)


class Registration:
    """Collects ``plugin(...)`` calls made by one script run."""

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    def __call__(self, *args: Any, **fields: Any) -> None:
        if len(args) > 1:
            raise RegistrationError("plugin() takes at most one positional argument")
        if args:
            (arg,) = args
            if not isinstance(arg, Mapping):
                raise RegistrationError(
                    f"plugin() expects a mapping, got {type(arg).__name__}"
                )
            fields = {**arg, **fields}
        self.calls.append(fields)

    def harvest(self) -> PluginOutput:
        """Validate the single registration and freeze its entries.

        Invalid entries are dropped and reported in ``rejected``; the
        rest of the registration survives.
        """
        if not self.calls:
            raise RegistrationError("script never called plugin()")
        if len(self.calls) > 1:
            raise RegistrationError(
                f"plugin() must be called exactly once, was called {len(self.calls)} times"
            )
        payload = self.calls[0]

        unknown = set(payload) - PLUGIN_FIELDS
        if unknown:
            raise RegistrationError(
                f"unknown plugin field(s) {sorted(map(str, unknown))}; "
                f"allowed: {sorted(PLUGIN_FIELDS)}"
            )
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise RegistrationError("plugin name must be a non-empty string")

        raw_entries = payload.get("entries", ())
        if isinstance(raw_entries, (str, bytes, Mapping)) or not isinstance(
            raw_entries, Iterable
        ):
            raise RegistrationError("plugin entries must be a list or an iterable")

        entries: list[Entry] = []
        rejected: list[InvalidEntry] = []
        # Generators run plugin code here; faults propagate to the sandbox.
        for idx, raw in enumerate(raw_entries):
            try:
                entries.append(freeze(raw))
            except InvalidEntry as e:
                rejected.append(InvalidEntry(f"entry #{idx}: {e}"))
        return PluginOutput(name=name, entries=tuple(entries), rejected=tuple(rejected))


def build_script_globals(
    capabilities: Capabilities,
    registration: Registration,
    *,
    script_name: str,
) -> dict[str, Any]:
    """Fresh globals mapping exposing only the plugin capability surface."""
    safe_builtins: dict[str, Any] = {
        name: getattr(builtins, name) for name in _SAFE_BUILTINS
    }
    safe_builtins["__import__"] = restricted_import

    def run(argv: Any) -> str:
        args = shlex.split(argv) if isinstance(argv, str) else list(argv)
        return capabilities.run_command(args)

    return {
        "__builtins__": safe_builtins,
        "__name__": f"launchr_plugin_{script_name}",
        "entry": make_entry,
        "plugin": registration,
        "list_dir": capabilities.list_dir,
        "read_lines": capabilities.read_lines,
        "getenv": capabilities.getenv,
        "run": run,
        "join_path": posixpath.join,
    }
