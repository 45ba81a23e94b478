from .builtins import BUILTIN_PLUGINS, BuiltinOptions
from .discovery import discover_units
from .registry import PluginRegistry
from .sandbox import PluginSandbox

__all__ = [
    "BUILTIN_PLUGINS",
    "BuiltinOptions",
    "PluginRegistry",
    "PluginSandbox",
    "discover_units",
]
