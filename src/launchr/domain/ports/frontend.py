"""Frontend contract: the seam every rendering backend implements."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Union, runtime_checkable

from launchr.domain.corpus import EntryId

if TYPE_CHECKING:
    from launchr.application.dispatcher import Dispatcher
    from launchr.application.matcher import Matcher
    from launchr.infrastructure.plugins.registry import PluginRegistry


@dataclass(frozen=True)
class QueryChanged:
    text: str


@dataclass(frozen=True)
class SelectionMoved:
    delta: int


@dataclass(frozen=True)
class Activate:
    pass


@dataclass(frozen=True)
class Cancel:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


Event = Union[QueryChanged, SelectionMoved, Activate, Cancel, Refresh]


@dataclass(frozen=True)
class ResultRow:
    """One rendered result line."""

    entry_id: EntryId
    name: str
    plugin: str
    score: int
    is_group: bool = False


@runtime_checkable
class Frontend(Protocol):
    """A rendering/input backend.

    ``run`` owns the event loop and returns a process exit code.
    """

    def render(
        self, results: Sequence[ResultRow], query: str, selection: int | None
    ) -> None: ...

    def poll_input(self) -> Event: ...

    def report_error(self, message: str) -> None: ...

    def run(
        self,
        registry: PluginRegistry,
        matcher: Matcher,
        dispatcher: Dispatcher,
    ) -> int: ...
