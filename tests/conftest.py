"""Shared test fixtures for the launchr test suite."""

from __future__ import annotations

import shlex
import textwrap
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path

import pytest

from launchr.domain.entries import Entry
from launchr.domain.exceptions import SpawnError
from launchr.domain.ports.spawner import ProcessHandle

# ---------------------------------------------------------------------------
# Capability provider fake
# ---------------------------------------------------------------------------


class FakeCapabilities:
    """In-memory capability provider.

    ``files`` maps absolute paths to file contents; directories exist
    implicitly as prefixes of file and executable paths.
    """

    def __init__(
        self,
        files: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
        executables: Iterable[str] = (),
        commands: Mapping[tuple[str, ...], str] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.env = dict(env or {})
        self.executables = set(executables)
        self.commands = dict(commands or {})
        self.calls: list[tuple[str, object]] = []

    def list_dir(self, path: str) -> list[str]:
        self.calls.append(("list_dir", path))
        prefix = path.rstrip("/") + "/"
        names = {
            p[len(prefix):].split("/", 1)[0]
            for p in [*self.files, *self.executables]
            if p.startswith(prefix)
        }
        if not names:
            raise FileNotFoundError(f"no such directory: {path}")
        return sorted(names)

    def read_lines(self, path: str) -> list[str]:
        self.calls.append(("read_lines", path))
        try:
            return self.files[path].splitlines()
        except KeyError:
            raise FileNotFoundError(f"no such file: {path}") from None

    def getenv(self, name: str, default: str | None = None) -> str | None:
        return self.env.get(name, default)

    def run_command(self, argv: Sequence[str]) -> str:
        self.calls.append(("run_command", tuple(argv)))
        try:
            return self.commands[tuple(argv)]
        except KeyError:
            raise OSError(f"command not available: {argv!r}") from None

    def is_executable(self, path: str) -> bool:
        return path in self.executables


@pytest.fixture()
def make_caps() -> Callable[..., FakeCapabilities]:
    return FakeCapabilities


@pytest.fixture()
def fake_caps() -> FakeCapabilities:
    return FakeCapabilities(env={"HOME": "/home/user"})


# ---------------------------------------------------------------------------
# Spawner fake
# ---------------------------------------------------------------------------


class FakeSpawner:
    """Records spawned commands; optionally fails every spawn."""

    def __init__(self, fail_with: str | None = None) -> None:
        self.commands: list[str] = []
        self.fail_with = fail_with

    def spawn(self, command: str) -> ProcessHandle:
        if self.fail_with is not None:
            raise SpawnError(self.fail_with)
        self.commands.append(command)
        return ProcessHandle(pid=1000 + len(self.commands), argv=tuple(shlex.split(command)))


@pytest.fixture()
def fake_spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture()
def failing_spawner() -> FakeSpawner:
    return FakeSpawner(fail_with="cannot start 'nope': No such file or directory")


# ---------------------------------------------------------------------------
# Plugin files and entries
# ---------------------------------------------------------------------------


@pytest.fixture()
def plugin_dir(tmp_path: Path) -> Path:
    path = tmp_path / "plugins"
    path.mkdir()
    return path


@pytest.fixture()
def write_plugin(plugin_dir: Path) -> Callable[[str, str], Path]:
    """Write a plugin file (dedented) into ``plugin_dir`` and return its path."""

    def _write(filename: str, code: str) -> Path:
        path = plugin_dir / filename
        path.write_text(textwrap.dedent(code), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def mario_entries() -> tuple[Entry, ...]:
    return (
        Entry.create(name="Super Mario World", exec="snes9x smw.sfc"),
        Entry.create(name="Luigi Mario Party", exec="dolphin lmp.iso"),
        Entry.create(name="Mario", exec="mario"),
    )
