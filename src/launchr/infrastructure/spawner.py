"""Fire-and-forget process spawning."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Mapping

import structlog

from launchr.domain.exceptions import SpawnError
from launchr.domain.ports.spawner import ProcessHandle

log = structlog.get_logger(__name__)


class SubprocessSpawner:
    """Starts commands detached from the launcher.

    Children get their own session and no inherited stdio, so they
    outlive the launcher and never write into its frontend.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = dict(environ) if environ is not None else None

    def spawn(self, command: str) -> ProcessHandle:
        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise SpawnError(f"cannot parse command {command!r}: {e}") from e
        if not argv:
            raise SpawnError("empty command")

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=self._environ,
                start_new_session=True,
                close_fds=True,
            )
        except OSError as e:
            raise SpawnError(f"cannot start {argv[0]!r}: {e.strerror or e}") from e

        log.debug("process_spawned", pid=proc.pid, binary=argv[0])
        return ProcessHandle(pid=proc.pid, argv=tuple(argv))
