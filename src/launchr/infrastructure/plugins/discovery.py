"""Enumerates plugin units from built-in names and plugin directories."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from launchr.domain.plugins import PluginKind, PluginUnit

from .builtins import BUILTIN_PLUGINS

log = structlog.get_logger(__name__)

_SUFFIX_KINDS: dict[str, PluginKind] = {
    ".py": "script",
    ".yaml": "data",
    ".yml": "data",
}


def discover_units(
    plugin_dirs: Iterable[Path],
    builtins: Iterable[str] = (),
) -> list[PluginUnit]:
    """Built-ins first (in the given order), then each directory's files.

    Files are sorted by name within a directory; directories keep their
    configured order. Indexes files only, nothing is executed.
    """
    units: list[PluginUnit] = []

    for name in builtins:
        builtin = BUILTIN_PLUGINS.get(name)
        if builtin is None:
            log.warning(
                "unknown_builtin_plugin",
                builtin=name,
                available=sorted(BUILTIN_PLUGINS),
            )
            continue
        units.append(PluginUnit(name=builtin.name, location=name, kind="builtin"))

    for directory in plugin_dirs:
        directory = Path(directory).expanduser()
        if not directory.is_dir():
            log.warning("plugin_directory_not_found", directory=str(directory))
            continue

        found = 0
        for path in sorted(directory.iterdir(), key=lambda p: p.name):
            if path.name.startswith((".", "_")) or path.is_dir():
                continue
            kind = _SUFFIX_KINDS.get(path.suffix.lower())
            if kind is None:
                continue
            units.append(PluginUnit(name=path.stem, location=path, kind=kind))
            found += 1

        log.info("plugins_discovered", count=found, directory=str(directory))

    if not units:
        log.warning("no_plugins_found")
    return units
