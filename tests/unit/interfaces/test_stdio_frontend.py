"""Tests for the line-oriented stdio frontend."""

from __future__ import annotations

import io

import pytest

from launchr.application.dispatcher import Dispatcher
from launchr.application.matcher import Matcher
from launchr.domain.corpus import Corpus, EntryId, PluginEntries
from launchr.domain.entries import Entry
from launchr.domain.ports.frontend import (
    Activate,
    Cancel,
    QueryChanged,
    Refresh,
    ResultRow,
    SelectionMoved,
)
from launchr.interfaces.frontends import FRONTEND_BACKENDS, create_frontend
from launchr.interfaces.frontends.stdio import StdioFrontend, format_row


def _frontend(text: str = "") -> tuple[StdioFrontend, io.StringIO]:
    out = io.StringIO()
    return StdioFrontend(io.StringIO(text), out), out


class _StaticRegistry:
    def __init__(self, corpus: Corpus) -> None:
        self.corpus = corpus
        self.refreshes = 0

    def refresh(self) -> Corpus:
        self.refreshes += 1
        return self.corpus


# ---------------------------------------------------------------------------
# Input mapping
# ---------------------------------------------------------------------------


class TestPollInput:
    @pytest.mark.parametrize(
        ("line", "event"),
        [
            ("fire\n", QueryChanged("fire")),
            ("  two words \n", QueryChanged("  two words ")),
            ("\n", Activate()),
            ("   \n", Activate()),
            (":n\n", SelectionMoved(1)),
            (":p\n", SelectionMoved(-1)),
            (":r\n", Refresh()),
            (":q\n", Cancel()),
        ],
    )
    def test_line_to_event(self, line: str, event: object) -> None:
        frontend, _ = _frontend(line)
        assert frontend.poll_input() == event

    def test_end_of_input_cancels(self) -> None:
        frontend, _ = _frontend("")
        assert frontend.poll_input() == Cancel()

    def test_windows_line_endings(self) -> None:
        frontend, _ = _frontend("vim\r\n")
        assert frontend.poll_input() == QueryChanged("vim")


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestRender:
    def test_format_row(self) -> None:
        row = ResultRow(EntryId(0, (2,)), "Firefox", "FreeDesktop", 1000)
        assert format_row(row) == "  Firefox  (FreeDesktop)"
        assert format_row(row, selected=True) == "> Firefox  (FreeDesktop)"

    def test_format_child_group_row(self) -> None:
        row = ResultRow(EntryId(1, (0, 3)), "Power", "Tools", 0, is_group=True)
        assert format_row(row) == "    Power [+]  (Tools)"

    def test_render_marks_selection(self) -> None:
        frontend, out = _frontend()
        rows = [
            ResultRow(EntryId(0, (0,)), "a", "P", 1),
            ResultRow(EntryId(0, (1,)), "b", "P", 1),
        ]
        frontend.render(rows, "q", 1)
        assert out.getvalue().splitlines() == ["query: q", "  a  (P)", "> b  (P)"]

    def test_render_no_matches(self) -> None:
        frontend, out = _frontend()
        frontend.render([], "zzz", None)
        assert "(no matches)" in out.getvalue()

    def test_report_error(self) -> None:
        frontend, out = _frontend()
        frontend.report_error("cannot start 'x'")
        assert out.getvalue() == "! cannot start 'x'\n"


# ---------------------------------------------------------------------------
# Full loop
# ---------------------------------------------------------------------------


class TestRun:
    def test_query_then_launch(self, fake_spawner, mario_entries) -> None:
        corpus = Corpus.from_plugin_entries(
            [PluginEntries(0, "Games", mario_entries)]
        )
        frontend, out = _frontend("world\n\n")
        code = frontend.run(
            _StaticRegistry(corpus),  # type: ignore[arg-type]
            Matcher(),
            Dispatcher(fake_spawner, terminal_runner="xterm -e $COMMAND"),
        )
        assert code == 0
        assert fake_spawner.commands == ["snes9x smw.sfc"]
        assert "> Super Mario World  (Games)" in out.getvalue()

    def test_launch_failure_keeps_running(self, failing_spawner) -> None:
        corpus = Corpus.from_plugin_entries(
            [PluginEntries(0, "P", (Entry.create(exec="nope"),))]
        )
        frontend, out = _frontend("\n:q\n")
        code = frontend.run(
            _StaticRegistry(corpus),  # type: ignore[arg-type]
            Matcher(),
            Dispatcher(failing_spawner, terminal_runner="xterm -e $COMMAND"),
        )
        assert code == 0
        assert "! cannot start 'nope'" in out.getvalue()

    def test_refresh_command(self, fake_spawner) -> None:
        registry = _StaticRegistry(Corpus.empty())
        frontend, _ = _frontend(":r\n")
        frontend.run(
            registry,  # type: ignore[arg-type]
            Matcher(),
            Dispatcher(fake_spawner, terminal_runner="xterm -e $COMMAND"),
        )
        assert registry.refreshes == 1


class TestBackendSelection:
    def test_stdio_registered(self) -> None:
        assert FRONTEND_BACKENDS["stdio"] is StdioFrontend
        assert isinstance(create_frontend("stdio", max_results=5), StdioFrontend)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError, match="unknown frontend backend"):
            create_frontend("gtk")
