"""Composition root: wires config into the launcher's collaborators."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import partial
from typing import Any

import structlog

from launchr.application.dispatcher import Dispatcher
from launchr.application.matcher import Matcher
from launchr.domain.ports.frontend import Frontend
from launchr.domain.ports.spawner import Spawner
from launchr.infrastructure.capabilities import HostCapabilities
from launchr.infrastructure.config.schema import AppConfig
from launchr.infrastructure.plugins import (
    BuiltinOptions,
    PluginRegistry,
    PluginSandbox,
    discover_units,
)
from launchr.infrastructure.spawner import SubprocessSpawner
from launchr.interfaces.frontends import create_frontend

log = structlog.get_logger(__name__)

_LOCALE_VARS = ("LC_ALL", "LC_MESSAGES", "LANG")


@dataclass
class Launcher:
    config: AppConfig
    registry: PluginRegistry
    matcher: Matcher
    dispatcher: Dispatcher
    frontend: Frontend

    def run(self) -> int:
        return self.frontend.run(self.registry, self.matcher, self.dispatcher)


def resolve_language(config: AppConfig, environ: Mapping[str, str]) -> str | None:
    if config.language:
        return config.language
    for var in _LOCALE_VARS:
        value = environ.get(var)
        if value and value not in ("C", "POSIX"):
            return value
    return None


def build_launcher(
    config: AppConfig,
    *,
    environ: Mapping[str, str] | None = None,
    spawner: Spawner | None = None,
    frontend_options: dict[str, Any] | None = None,
) -> Launcher:
    env = dict(os.environ if environ is None else environ)

    sandbox = PluginSandbox(
        HostCapabilities(env),
        builtin_options=BuiltinOptions(language=resolve_language(config, env)),
    )
    registry = PluginRegistry(
        sandbox,
        units=partial(discover_units, config.plugin_dirs, config.builtins),
        timeout_seconds=config.plugin_timeout_seconds,
        max_workers=config.plugin_max_workers,
        max_depth=config.max_depth,
        include_child_terms=config.include_child_terms,
    )
    dispatcher = Dispatcher(
        spawner if spawner is not None else SubprocessSpawner(env),
        terminal_runner=config.terminal_runner,
    )
    frontend = create_frontend(
        config.frontend_backend,
        max_results=config.max_results,
        **(frontend_options or {}),
    )
    log.debug(
        "launcher_built",
        plugin_dirs=[str(p) for p in config.plugin_dirs],
        builtins=config.builtins,
        frontend=config.frontend_backend,
    )
    return Launcher(
        config=config,
        registry=registry,
        matcher=Matcher(),
        dispatcher=dispatcher,
        frontend=frontend,
    )
