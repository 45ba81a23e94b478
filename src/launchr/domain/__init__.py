from .corpus import Corpus, CorpusRecord, EntryId, PluginEntries, normalize_term
from .entries import Entry, ExecFlags
from .exceptions import (
    InvalidEntry,
    LaunchError,
    LauncherError,
    PluginError,
    PluginTimeout,
    RegistrationError,
    ScriptLoadError,
    ScriptRuntimeError,
    SpawnError,
    UnresolvableEntry,
)
from .plugins import (
    PluginDiagnostic,
    PluginOutput,
    PluginRun,
    PluginUnit,
    UnitStatus,
)

__all__ = [
    "Corpus",
    "CorpusRecord",
    "Entry",
    "EntryId",
    "ExecFlags",
    "InvalidEntry",
    "LaunchError",
    "LauncherError",
    "PluginDiagnostic",
    "PluginEntries",
    "PluginError",
    "PluginOutput",
    "PluginRun",
    "PluginTimeout",
    "PluginUnit",
    "RegistrationError",
    "ScriptLoadError",
    "ScriptRuntimeError",
    "SpawnError",
    "UnitStatus",
    "UnresolvableEntry",
    "normalize_term",
]
