"""Plugin units, their per-build execution state, and diagnostics."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .entries import Entry
from .exceptions import InvalidEntry, PluginError

PluginKind = Literal["script", "data", "builtin"]


@dataclass(frozen=True)
class PluginUnit:
    """One plugin source.

    ``location`` is a file path for scripts and data files and the
    built-in's registered name for built-ins.
    """

    name: str
    location: str | Path
    kind: PluginKind = "script"


@dataclass(frozen=True)
class PluginOutput:
    """What a successfully executed unit registered."""

    name: str
    entries: tuple[Entry, ...]
    rejected: tuple[InvalidEntry, ...] = ()


@dataclass(frozen=True)
class PluginDiagnostic:
    """A recovered plugin failure, recorded next to the corpus."""

    plugin: str
    kind: str
    message: str
    location: str = ""

    @classmethod
    def from_error(cls, unit: PluginUnit, error: Exception) -> PluginDiagnostic:
        kind = getattr(error, "kind", None) or type(error).__name__
        return cls(
            plugin=unit.name,
            kind=kind,
            message=str(error),
            location=str(unit.location),
        )


class UnitStatus(enum.Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (UnitStatus.SUCCEEDED, UnitStatus.FAILED)


class PluginRun:
    """Execution state of one unit within one registry build.

    PENDING -> RUNNING -> SUCCEEDED | FAILED. Terminal states are final.
    """

    def __init__(self, unit: PluginUnit) -> None:
        self.unit = unit
        self._status = UnitStatus.PENDING
        self._output: PluginOutput | None = None
        self._error: PluginError | None = None

    @property
    def status(self) -> UnitStatus:
        return self._status

    @property
    def output(self) -> PluginOutput | None:
        return self._output

    @property
    def error(self) -> PluginError | None:
        return self._error

    def start(self) -> None:
        self._transition(UnitStatus.PENDING, UnitStatus.RUNNING)

    def succeed(self, output: PluginOutput) -> None:
        self._transition(UnitStatus.RUNNING, UnitStatus.SUCCEEDED)
        self._output = output

    def fail(self, error: PluginError) -> None:
        if self._status is UnitStatus.PENDING:
            # timed out or failed before a worker picked it up
            self._status = UnitStatus.RUNNING
        self._transition(UnitStatus.RUNNING, UnitStatus.FAILED)
        self._error = error

    def _transition(self, expected: UnitStatus, target: UnitStatus) -> None:
        if self._status is not expected:
            raise RuntimeError(
                f"plugin unit {self.unit.name!r} cannot go from "
                f"{self._status.value} to {target.value}"
            )
        self._status = target

    def __repr__(self) -> str:
        return f"PluginRun(unit={self.unit.name!r}, status={self._status.value})"
