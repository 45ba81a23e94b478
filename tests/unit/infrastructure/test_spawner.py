"""Tests for the detached subprocess spawner."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock

import pytest

from launchr.domain.exceptions import SpawnError
from launchr.infrastructure.spawner import SubprocessSpawner


@pytest.fixture()
def popen(monkeypatch) -> MagicMock:
    mock = MagicMock()
    mock.return_value.pid = 4242
    monkeypatch.setattr(subprocess, "Popen", mock)
    return mock


class TestSubprocessSpawner:
    def test_spawns_detached(self, popen: MagicMock) -> None:
        handle = SubprocessSpawner({"PATH": "/usr/bin"}).spawn("firefox --new-window 'a b'")

        assert handle.pid == 4242
        assert handle.argv == ("firefox", "--new-window", "a b")
        args, kwargs = popen.call_args
        assert args[0] == ["firefox", "--new-window", "a b"]
        assert kwargs["start_new_session"] is True
        assert kwargs["stdin"] is subprocess.DEVNULL
        assert kwargs["stdout"] is subprocess.DEVNULL
        assert kwargs["env"] == {"PATH": "/usr/bin"}

    def test_inherits_environment_by_default(self, popen: MagicMock) -> None:
        SubprocessSpawner().spawn("true")
        assert popen.call_args.kwargs["env"] is None

    def test_os_error(self, popen: MagicMock) -> None:
        popen.side_effect = FileNotFoundError(2, "No such file or directory")
        with pytest.raises(SpawnError, match="cannot start 'nope'"):
            SubprocessSpawner().spawn("nope")

    @pytest.mark.parametrize("command", ["", "   "])
    def test_empty_command(self, popen: MagicMock, command: str) -> None:
        with pytest.raises(SpawnError, match="empty"):
            SubprocessSpawner().spawn(command)
        popen.assert_not_called()

    def test_unbalanced_quotes(self, popen: MagicMock) -> None:
        with pytest.raises(SpawnError, match="cannot parse"):
            SubprocessSpawner().spawn("echo 'unterminated")

    def test_real_missing_binary(self) -> None:
        with pytest.raises(SpawnError):
            SubprocessSpawner().spawn("/definitely/not/a/binary")
