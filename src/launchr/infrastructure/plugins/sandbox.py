"""Runs one plugin unit and turns every fault into a ``PluginError``."""

from __future__ import annotations

from pathlib import Path

import structlog

from launchr.domain.exceptions import PluginError, ScriptLoadError, ScriptRuntimeError
from launchr.domain.plugins import PluginOutput, PluginUnit
from launchr.domain.ports.capabilities import Capabilities

from .builtins import BUILTIN_PLUGINS, BuiltinOptions
from .loader import compile_script, load_data_plugin
from .script_api import Registration, build_script_globals

log = structlog.get_logger(__name__)


class PluginSandbox:
    """Executes plugin units against an injected capability provider.

    ``run`` is synchronous and safe to call from worker threads: every
    script gets a fresh globals mapping and registration collector.
    """

    def __init__(
        self,
        capabilities: Capabilities,
        *,
        builtin_options: BuiltinOptions | None = None,
    ) -> None:
        self._capabilities = capabilities
        self._builtin_options = builtin_options or BuiltinOptions()

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    def run(self, unit: PluginUnit) -> PluginOutput:
        """Execute ``unit`` and harvest what it registered.

        Raises:
            PluginError: ScriptLoadError, ScriptRuntimeError or
                RegistrationError; nothing else escapes.
        """
        try:
            if unit.kind == "script":
                return self._run_script(unit)
            if unit.kind == "data":
                return load_data_plugin(Path(unit.location))
            if unit.kind == "builtin":
                return self._run_builtin(unit)
            raise ScriptLoadError(f"unknown plugin kind {unit.kind!r}")
        except PluginError:
            raise
        except Exception as e:
            log.debug(
                "plugin_raised",
                plugin=unit.name,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise ScriptRuntimeError(f"{type(e).__name__}: {e}") from e

    def _run_script(self, unit: PluginUnit) -> PluginOutput:
        path = Path(unit.location)
        code = compile_script(path)
        registration = Registration()
        script_globals = build_script_globals(
            self._capabilities, registration, script_name=path.stem
        )
        exec(code, script_globals)
        return registration.harvest()

    def _run_builtin(self, unit: PluginUnit) -> PluginOutput:
        builtin = BUILTIN_PLUGINS.get(str(unit.location))
        if builtin is None:
            raise ScriptLoadError(
                f"unknown built-in {unit.location!r}; "
                f"available: {sorted(BUILTIN_PLUGINS)}"
            )
        entries = tuple(builtin.produce(self._capabilities, self._builtin_options))
        return PluginOutput(name=builtin.display_name, entries=entries)
