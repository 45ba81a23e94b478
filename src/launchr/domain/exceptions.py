"""Launcher exception taxonomy."""

from __future__ import annotations


class LauncherError(Exception):
    """Base class for all launcher errors."""


class InvalidEntry(LauncherError):
    """Raised when an entry does not satisfy the entry invariants."""


class PluginError(LauncherError):
    """Base class for failures confined to a single plugin unit."""

    kind = "PluginError"


class ScriptLoadError(PluginError):
    """Raised when a plugin source cannot be read, parsed or compiled."""

    kind = "ScriptLoadError"


class ScriptRuntimeError(PluginError):
    """Raised when a plugin faults while executing."""

    kind = "ScriptRuntimeError"


class RegistrationError(PluginError):
    """Raised when plugin() is missing, repeated, or given a malformed payload."""

    kind = "RegistrationError"


class PluginTimeout(PluginError):
    """Raised when a plugin unit exceeds its execution budget."""

    kind = "PluginTimeout"


class LaunchError(LauncherError):
    """Base class for failures while launching a selected entry."""


class UnresolvableEntry(LaunchError):
    """Raised when no runnable command can be resolved for an entry."""


class SpawnError(LaunchError):
    """Raised when the process spawner cannot start a command."""
