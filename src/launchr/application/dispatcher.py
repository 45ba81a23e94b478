"""Resolves a selected entry to a command and hands it to the spawner."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from string import Template

import structlog

from launchr.domain.entries import Entry
from launchr.domain.exceptions import UnresolvableEntry
from launchr.domain.ports.spawner import ProcessHandle, Spawner

log = structlog.get_logger(__name__)

DEFAULT_TERMINAL_RUNNER = "xterm -T $DISPLAY_NAME -e $COMMAND"


@dataclass(frozen=True)
class ResolvedCommand:
    """The command to run and the entry that supplied it."""

    command: str
    entry: Entry


@dataclass(frozen=True)
class LaunchOutcome:
    handle: ProcessHandle
    command: str
    keep_running: bool


class Dispatcher:
    """Turns entries into launched processes.

    A group entry (empty exec) resolves to its first child's command,
    recursively. The flags of the entry that supplied the command
    decide terminal wrapping and whether the launcher keeps running.

    Args:
        spawner: Process spawner; raises ``SpawnError``.
        terminal_runner: ``string.Template`` wrapping commands of
            ``is_term`` entries. Placeholders: ``$DISPLAY_NAME``,
            ``$BINARY``, ``$FLAGS``, ``$COMMAND``.
    """

    def __init__(
        self,
        spawner: Spawner,
        *,
        terminal_runner: str = DEFAULT_TERMINAL_RUNNER,
    ) -> None:
        self._spawner = spawner
        self._terminal_runner = Template(terminal_runner)

    def resolve(self, entry: Entry) -> ResolvedCommand:
        """Raises ``UnresolvableEntry`` for a leaf with an empty exec."""
        current = entry
        while not current.exec.strip():
            if not current.children:
                raise UnresolvableEntry(
                    f"entry {current.name!r} has no command and no children"
                )
            current = current.children[0]

        command = current.exec
        if current.flags.is_term:
            command = self.terminal_command(current)
        return ResolvedCommand(command=command, entry=current)

    def terminal_command(self, entry: Entry) -> str:
        try:
            parts = shlex.split(entry.exec)
        except ValueError:
            parts = entry.exec.split()
        binary = parts[0] if parts else ""
        # values are shell-quoted so the result splits back into words
        return self._terminal_runner.safe_substitute(
            DISPLAY_NAME=shlex.quote(entry.name),
            BINARY=shlex.quote(binary),
            FLAGS=shlex.join(parts[1:]),
            COMMAND=shlex.join(parts),
        )

    def launch(self, entry: Entry) -> LaunchOutcome:
        """Resolve and spawn without waiting for the child.

        Raises:
            UnresolvableEntry: nothing runnable in the entry.
            SpawnError: the spawner could not start the command.
        """
        resolved = self.resolve(entry)
        handle = self._spawner.spawn(resolved.command)
        log.info(
            "entry_launched",
            entry=entry.name,
            command=resolved.command,
            pid=handle.pid,
        )
        return LaunchOutcome(
            handle=handle,
            command=resolved.command,
            keep_running=resolved.entry.flags.should_fork,
        )
