"""Trusted built-in plugins.

Built-ins run through the same sandbox wrapper as scripts and see the
host only through the injected capability provider.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from launchr.domain.entries import Entry
from launchr.domain.ports.capabilities import Capabilities

from .freedesktop import freedesktop_entries
from .path import path_entries


@dataclass(frozen=True)
class BuiltinOptions:
    language: str | None = None


BuiltinProducer = Callable[[Capabilities, BuiltinOptions], Iterable[Entry]]


@dataclass(frozen=True)
class BuiltinPlugin:
    name: str
    display_name: str
    produce: BuiltinProducer


BUILTIN_PLUGINS: dict[str, BuiltinPlugin] = {
    "xdg": BuiltinPlugin(
        name="xdg",
        display_name="FreeDesktop",
        produce=lambda caps, opts: freedesktop_entries(caps, language=opts.language),
    ),
    "path": BuiltinPlugin(
        name="path",
        display_name="$PATH",
        produce=lambda caps, opts: path_entries(caps),
    ),
}

__all__ = ["BUILTIN_PLUGINS", "BuiltinOptions", "BuiltinPlugin", "BuiltinProducer"]
