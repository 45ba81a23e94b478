"""Line-oriented frontend over stdin/stdout.

Each input line is one event:

- plain text: replace the query
- empty line: launch the selected entry
- ``:n`` / ``:p``: move the selection down / up
- ``:r``: refresh plugins
- ``:q`` or end of input: quit
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import TYPE_CHECKING, TextIO

from launchr.application.session import LauncherSession
from launchr.domain.ports.frontend import (
    Activate,
    Cancel,
    Event,
    QueryChanged,
    Refresh,
    ResultRow,
    SelectionMoved,
)

if TYPE_CHECKING:
    from launchr.application.dispatcher import Dispatcher
    from launchr.application.matcher import Matcher
    from launchr.infrastructure.plugins.registry import PluginRegistry

_COMMANDS: dict[str, Event] = {
    ":n": SelectionMoved(1),
    ":p": SelectionMoved(-1),
    ":r": Refresh(),
    ":q": Cancel(),
}


def format_row(row: ResultRow, *, selected: bool = False) -> str:
    marker = ">" if selected else " "
    indent = "  " * row.entry_id.depth
    group = " [+]" if row.is_group else ""
    return f"{marker} {indent}{row.name}{group}  ({row.plugin})"


class StdioFrontend:
    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
        *,
        max_results: int | None = None,
    ) -> None:
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._max_results = max_results

    def render(
        self, results: Sequence[ResultRow], query: str, selection: int | None
    ) -> None:
        out = self._stdout
        out.write(f"query: {query}\n")
        if not results:
            out.write("  (no matches)\n")
        for idx, row in enumerate(results):
            out.write(format_row(row, selected=idx == selection) + "\n")
        out.flush()

    def poll_input(self) -> Event:
        line = self._stdin.readline()
        if not line:
            return Cancel()
        text = line.rstrip("\r\n")
        if not text.strip():
            return Activate()
        command = _COMMANDS.get(text.strip())
        if command is not None:
            return command
        return QueryChanged(text)

    def report_error(self, message: str) -> None:
        self._stdout.write(f"! {message}\n")
        self._stdout.flush()

    def run(
        self,
        registry: PluginRegistry,
        matcher: Matcher,
        dispatcher: Dispatcher,
    ) -> int:
        session = LauncherSession(
            registry, matcher, dispatcher, self, max_results=self._max_results
        )
        return session.run()
