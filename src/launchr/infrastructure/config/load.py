from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from .defaults import DEFAULT_CONFIG
from .schema import AppConfig, EnvOverrides

# Flat setting name (env var suffix, CLI override key) -> (section, key).
FLAT_KEYS: dict[str, tuple[str, str]] = {
    "plugin_dirs": ("plugins", "dirs"),
    "builtins": ("plugins", "builtins"),
    "plugin_timeout_seconds": ("plugins", "timeout_seconds"),
    "plugin_max_workers": ("plugins", "max_workers"),
    "max_results": ("search", "max_results"),
    "max_depth": ("search", "max_depth"),
    "include_child_terms": ("search", "include_child_terms"),
    "terminal_runner": ("launch", "terminal_runner"),
    "language": ("launch", "language"),
    "frontend_backend": ("frontend", "backend"),
    "log_level": ("logging", "level"),
    "log_format": ("logging", "format"),
}

_SECTIONS = frozenset(section for section, _ in FLAT_KEYS.values())
_TOP_LEVEL = ("app_name", "environment")


def _merge_into(target: dict[str, Any], layer: Mapping[str, Any]) -> None:
    """Overlay ``layer`` on ``target``; sections merge key-wise, lists are replaced."""
    for key, value in layer.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge_into(current, value)
        else:
            target[key] = value


def _sectioned(layer: Mapping[str, Any]) -> dict[str, Any]:
    """Bring one settings layer into the ``plugins/search/launch/...`` shape.

    Sectioned blocks pass through; flat keys from ``FLAT_KEYS`` are
    folded into their section. Unknown keys are dropped here and left
    to ``AppConfig`` defaults.
    """
    out: dict[str, Any] = {
        key: layer[key] for key in _TOP_LEVEL if key in layer
    }
    for section in _SECTIONS:
        block = layer.get(section)
        if isinstance(block, Mapping):
            out[section] = dict(block)
    for flat, (section, key) in FLAT_KEYS.items():
        if flat in layer:
            out.setdefault(section, {})[key] = layer[flat]
    return out


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"{path}: launcher config must be a mapping, got {type(parsed).__name__}"
        )
    return parsed


def load_config(
    *,
    config_path: Path | None = None,
    dotenv_path: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """Build the launcher settings: defaults < YAML < LAUNCHR_* env < CLI.

    A ``.env`` file only fills variables that are not already set.
    Nothing is created on disk; plugin directories that do not exist
    are reported later by discovery.
    """
    if dotenv_path is not None:
        if not dotenv_path.exists():
            raise FileNotFoundError(dotenv_path)
        load_dotenv(dotenv_path, override=False)

    layers = [
        deepcopy(DEFAULT_CONFIG),
        _read_yaml(config_path) if config_path is not None else {},
        EnvOverrides().to_update_dict(),
        cli_overrides or {},
    ]
    merged: dict[str, Any] = {}
    for layer in layers:
        _merge_into(merged, _sectioned(layer))

    return AppConfig.model_validate(merged)
