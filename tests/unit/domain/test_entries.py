"""Tests for the Entry value objects and their validating constructor."""

from __future__ import annotations

import pytest

from launchr.domain.entries import Entry, ExecFlags, exec_name
from launchr.domain.exceptions import InvalidEntry

# ---------------------------------------------------------------------------
# Entry.create
# ---------------------------------------------------------------------------


class TestEntryCreate:
    def test_minimal_entry(self) -> None:
        e = Entry.create(name="Firefox", exec="firefox")
        assert e.name == "Firefox"
        assert e.exec == "firefox"
        assert e.search_terms == ("Firefox",)
        assert e.children == ()
        assert e.flags == ExecFlags()

    def test_name_defaults_to_binary_basename(self) -> None:
        e = Entry.create(exec="/usr/bin/htop --tree")
        assert e.name == "htop"

    def test_name_prepended_to_search_terms(self) -> None:
        e = Entry.create(name="Steam", exec="steam", search_terms=["Game", "Valve"])
        assert e.search_terms == ("Steam", "Game", "Valve")

    def test_name_not_duplicated_when_present(self) -> None:
        e = Entry.create(name="Steam", exec="steam", search_terms=["Game", "Steam"])
        assert e.search_terms == ("Game", "Steam")

    def test_duplicate_terms_allowed(self) -> None:
        e = Entry.create(name="a", exec="a", search_terms=["x", "x"])
        assert e.search_terms == ("a", "x", "x")

    def test_group_without_exec(self) -> None:
        child = Entry.create(name="Reboot", exec="systemctl reboot")
        group = Entry.create(name="Power", children=[child])
        assert group.is_group
        assert group.children == (child,)

    def test_blank_exec_with_children_is_group(self) -> None:
        child = Entry.create(name="Reboot", exec="systemctl reboot")
        group = Entry.create(name="Power", exec="   ", children=[child])
        assert group.is_group

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="name"):
            Entry.create(name="   ", exec="true")

    def test_empty_exec_without_children_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="empty exec"):
            Entry.create(name="Nothing", exec="")

    def test_no_name_and_no_exec_rejected(self) -> None:
        with pytest.raises(InvalidEntry):
            Entry.create()

    def test_non_string_exec_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="exec must be a string"):
            Entry.create(name="x", exec=42)  # type: ignore[arg-type]

    def test_non_entry_child_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="children"):
            Entry.create(name="g", children=["not an entry"])  # type: ignore[list-item]

    def test_string_search_terms_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="search_terms"):
            Entry.create(name="x", exec="x", search_terms="abc")  # type: ignore[arg-type]

    def test_entries_are_immutable(self) -> None:
        e = Entry.create(name="x", exec="x")
        with pytest.raises(AttributeError):
            e.name = "y"  # type: ignore[misc]


class TestFromFields:
    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="unknown entry field"):
            Entry.from_fields({"name": "x", "exec": "x", "icon": "x.png"})

    def test_valid_fields(self) -> None:
        e = Entry.from_fields({"exec": "vim", "exec_flags": {"is_term": True}})
        assert e.name == "vim"
        assert e.flags.is_term


# ---------------------------------------------------------------------------
# ExecFlags
# ---------------------------------------------------------------------------


class TestExecFlags:
    def test_defaults(self) -> None:
        flags = ExecFlags.from_mapping(None)
        assert not flags.is_term
        assert not flags.should_fork

    def test_partial_mapping(self) -> None:
        assert ExecFlags.from_mapping({"should_fork": True}) == ExecFlags(should_fork=True)

    def test_unknown_flag_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="unknown exec_flags"):
            ExecFlags.from_mapping({"detach": True})

    def test_non_bool_rejected(self) -> None:
        with pytest.raises(InvalidEntry, match="must be a bool"):
            ExecFlags.from_mapping({"is_term": "yes"})


# ---------------------------------------------------------------------------
# exec_name
# ---------------------------------------------------------------------------


class TestExecName:
    def test_basename_of_first_token(self) -> None:
        assert exec_name("/usr/bin/retroarch -L core.so rom.sfc") == "retroarch"

    def test_quoted_path(self) -> None:
        assert exec_name('"/opt/My App/run" --x') == "run"

    def test_unbalanced_quotes_fall_back_to_whitespace_split(self) -> None:
        assert exec_name('foo "bar') == "foo"

    def test_empty(self) -> None:
        assert exec_name("   ") == ""
