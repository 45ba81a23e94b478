"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "launchr",
    "environment": "dev",
    "plugins": {
        "dirs": ["~/.config/launchr/plugins"],
        "builtins": ["xdg", "path"],
        "timeout_seconds": 5.0,
        "max_workers": 4,
    },
    "search": {
        "max_results": 20,
        "max_depth": None,
        "include_child_terms": False,
    },
    "launch": {
        "terminal_runner": "xterm -T $DISPLAY_NAME -e $COMMAND",
        "language": None,
    },
    "frontend": {
        "backend": "stdio",
    },
    "logging": {
        "level": "WARNING",
        "format": None,  # Derived from environment in schema.py
    },
}
