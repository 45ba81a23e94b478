"""Event handling shared by every frontend backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from launchr.domain.corpus import Corpus, CorpusRecord
from launchr.domain.exceptions import LaunchError
from launchr.domain.ports.frontend import (
    Activate,
    Cancel,
    Event,
    Frontend,
    QueryChanged,
    Refresh,
    ResultRow,
    SelectionMoved,
)

from .dispatcher import Dispatcher, LaunchOutcome
from .matcher import Match, Matcher

if TYPE_CHECKING:
    from launchr.infrastructure.plugins.registry import PluginRegistry

log = structlog.get_logger(__name__)


@dataclass
class QueryState:
    """The current query and its ranked results; recomputed per change."""

    text: str = ""
    results: list[Match] = field(default_factory=list)


class LauncherSession:
    """Owns the QueryState and drives one frontend until it exits.

    Launch failures are reported through the frontend and never end
    the session. A successful launch ends it unless the launched entry
    asks the launcher to keep running.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        matcher: Matcher,
        dispatcher: Dispatcher,
        frontend: Frontend,
        *,
        max_results: int | None = None,
    ) -> None:
        self._registry = registry
        self._matcher = matcher
        self._dispatcher = dispatcher
        self._frontend = frontend
        self._max_results = max_results

        self.state = QueryState()
        self.selection: int | None = None
        self.running = True
        self.last_launch: LaunchOutcome | None = None

    @property
    def corpus(self) -> Corpus:
        return self._registry.corpus

    def rows(self) -> list[ResultRow]:
        corpus = self.corpus
        rows: list[ResultRow] = []
        for match in self.state.results:
            record = corpus.get(match.entry_id)
            if record is None:
                continue
            rows.append(
                ResultRow(
                    entry_id=match.entry_id,
                    name=record.entry.name,
                    plugin=record.plugin,
                    score=match.score,
                    is_group=record.entry.is_group,
                )
            )
        return rows

    def selected_record(self) -> CorpusRecord | None:
        if self.selection is None:
            return None
        return self.corpus.get(self.state.results[self.selection].entry_id)

    def set_query(self, text: str) -> None:
        self.state = QueryState(
            text=text,
            results=self._matcher.query(self.corpus, text, limit=self._max_results),
        )
        self.selection = 0 if self.state.results else None

    def move_selection(self, delta: int) -> None:
        if not self.state.results:
            self.selection = None
            return
        current = self.selection or 0
        self.selection = max(0, min(current + delta, len(self.state.results) - 1))

    def refresh(self) -> None:
        self._registry.refresh()
        previous = self.selection
        self.set_query(self.state.text)
        if previous is not None and self.selection is not None:
            self.move_selection(previous)

    def activate(self) -> LaunchOutcome | None:
        record = self.selected_record()
        if record is None:
            self._frontend.report_error("nothing selected")
            return None
        try:
            outcome = self._dispatcher.launch(record.entry)
        except LaunchError as e:
            log.warning(
                "launch_failed",
                entry=record.entry.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            self._frontend.report_error(str(e))
            return None

        self.last_launch = outcome
        if not outcome.keep_running:
            self.running = False
        return outcome

    def handle(self, event: Event) -> None:
        if isinstance(event, QueryChanged):
            self.set_query(event.text)
        elif isinstance(event, SelectionMoved):
            self.move_selection(event.delta)
        elif isinstance(event, Activate):
            self.activate()
        elif isinstance(event, Refresh):
            self.refresh()
        elif isinstance(event, Cancel):
            self.running = False
        else:
            raise TypeError(f"unknown frontend event {event!r}")

    def render(self) -> None:
        self._frontend.render(self.rows(), self.state.text, self.selection)

    def run(self) -> int:
        """Event loop: render, poll, handle until cancelled or launched."""
        self.set_query(self.state.text)
        self.render()
        while self.running:
            self.handle(self._frontend.poll_input())
            if self.running:
                self.render()
        return 0
