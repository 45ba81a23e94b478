"""Port for the process-spawning collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class ProcessHandle:
    pid: int
    argv: tuple[str, ...]


@runtime_checkable
class Spawner(Protocol):
    """Fire-and-forget process starter.

    ``spawn`` raises ``SpawnError`` and never waits for the child.
    """

    def spawn(self, command: str) -> ProcessHandle: ...
