"""Host-backed implementation of the plugin capability port."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

log = structlog.get_logger(__name__)


class CapabilityError(OSError):
    """Raised when a capability call fails on the host."""


class HostCapabilities:
    """Read-only OS inspection against the real filesystem.

    Args:
        environ: Environment snapshot visible to plugins. Taken
            explicitly so plugin runs do not read ambient process state.
        command_timeout: Seconds a ``run_command`` child may take.
    """

    def __init__(
        self,
        environ: Mapping[str, str],
        *,
        command_timeout: float = 5.0,
    ) -> None:
        self._environ = dict(environ)
        self._command_timeout = command_timeout

    @classmethod
    def from_process(cls, *, command_timeout: float = 5.0) -> HostCapabilities:
        return cls(dict(os.environ), command_timeout=command_timeout)

    def list_dir(self, path: str) -> list[str]:
        try:
            with os.scandir(self._expand(path)) as it:
                return sorted(ent.name for ent in it)
        except OSError as e:
            raise CapabilityError(f"cannot list {path!r}: {e.strerror or e}") from e

    def read_lines(self, path: str) -> list[str]:
        try:
            raw = Path(self._expand(path)).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise CapabilityError(f"cannot read {path!r}: {e.strerror or e}") from e
        return raw.splitlines()

    def getenv(self, name: str, default: str | None = None) -> str | None:
        return self._environ.get(name, default)

    def run_command(self, argv: Sequence[str]) -> str:
        args = [str(a) for a in argv]
        if not args:
            raise CapabilityError("run_command needs at least one argument")
        try:
            proc = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                env=self._environ,
                timeout=self._command_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CapabilityError(
                f"command {args[0]!r} timed out after {self._command_timeout}s"
            ) from e
        except OSError as e:
            raise CapabilityError(f"cannot run {args[0]!r}: {e.strerror or e}") from e

        if proc.returncode != 0:
            log.debug(
                "capability_command_nonzero",
                command=args[0],
                returncode=proc.returncode,
            )
        return proc.stdout.decode("utf-8", errors="replace")

    def is_executable(self, path: str) -> bool:
        p = self._expand(path)
        return os.path.isfile(p) and os.access(p, os.X_OK)

    def _expand(self, path: str) -> str:
        if path == "~" or path.startswith("~/"):
            home = self._environ.get("HOME")
            if home:
                return home + path[1:]
        return path
