"""Every executable found on ``$PATH``."""

from __future__ import annotations

import posixpath
from collections.abc import Iterator

import structlog

from launchr.domain.entries import Entry
from launchr.domain.ports.capabilities import Capabilities

log = structlog.get_logger(__name__)


def path_entries(caps: Capabilities) -> Iterator[Entry]:
    # first hit wins, like shell lookup
    seen: set[str] = set()
    for directory in _path_dirs(caps):
        try:
            names = caps.list_dir(directory)
        except OSError as e:
            log.debug("path_dir_unreadable", directory=directory, error_message=str(e))
            continue
        for name in names:
            if name in seen:
                continue
            full = posixpath.join(directory, name)
            if not caps.is_executable(full):
                continue
            seen.add(name)
            yield Entry.create(name=name, exec=full)


def _path_dirs(caps: Capabilities) -> list[str]:
    raw = caps.getenv("PATH") or ""
    out: list[str] = []
    for part in raw.split(":"):
        if part and part not in out:
            out.append(part)
    return out
