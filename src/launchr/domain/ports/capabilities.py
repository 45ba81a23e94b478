"""Port for the read-only OS inspection primitives plugins may use."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class Capabilities(Protocol):
    """Bounded set of read-only OS inspection primitives.

    Implementations receive their environment explicitly at construction
    so plugin execution is reproducible without ambient process state.
    """

    def list_dir(self, path: str) -> list[str]:
        """Names in a directory, sorted, without ``.`` and ``..``."""
        ...

    def read_lines(self, path: str) -> list[str]:
        """Lines of a text file, without trailing newlines."""
        ...

    def getenv(self, name: str, default: str | None = None) -> str | None: ...

    def run_command(self, argv: Sequence[str]) -> str:
        """Run a read-only command and return its captured stdout."""
        ...

    def is_executable(self, path: str) -> bool:
        """Trusted built-ins only; never exposed to scripts."""
        ...
