"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from launchr.infrastructure.plugins.builtins import BUILTIN_PLUGINS

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


def _normalize_paths(value: Any) -> list[Path]:
    if isinstance(value, (str, Path)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise TypeError(f"Expected a list of paths, got: {type(value)!r}")
    return [_normalize_path(v) for v in value]


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (plugins/search/launch/frontend/logging).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="launchr", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # Plugins (YAML section: plugins.*)
    plugin_dirs: List[Path] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "plugin_dirs",
            AliasPath("plugins", "dirs"),
        ),
        description="Directories scanned for script (.py) and data (.yaml) plugins.",
    )
    builtins: List[str] = Field(
        default_factory=lambda: ["xdg", "path"],
        validation_alias=AliasChoices(
            "builtins",
            AliasPath("plugins", "builtins"),
        ),
        description="Built-in plugins to run before the plugin directories.",
    )
    plugin_timeout_seconds: float = Field(
        default=5.0,
        validation_alias=AliasChoices(
            "plugin_timeout_seconds",
            AliasPath("plugins", "timeout_seconds"),
        ),
        description="Per-unit execution budget in seconds.",
    )
    plugin_max_workers: int = Field(
        default=4,
        validation_alias=AliasChoices(
            "plugin_max_workers",
            AliasPath("plugins", "max_workers"),
        ),
        description="Max plugin units running at once.",
    )

    # Search (YAML section: search.*)
    max_results: Optional[int] = Field(
        default=20,
        validation_alias=AliasChoices(
            "max_results",
            AliasPath("search", "max_results"),
        ),
        description="Result rows shown per query (None = all).",
    )
    max_depth: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices(
            "max_depth",
            AliasPath("search", "max_depth"),
        ),
        description="Deepest child level indexed (0 = top-level only, None = all).",
    )
    include_child_terms: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "include_child_terms",
            AliasPath("search", "include_child_terms"),
        ),
        description="Let group entries match on their descendants' terms.",
    )

    # Launch (YAML section: launch.*)
    terminal_runner: str = Field(
        default="xterm -T $DISPLAY_NAME -e $COMMAND",
        validation_alias=AliasChoices(
            "terminal_runner",
            AliasPath("launch", "terminal_runner"),
        ),
        description=(
            "Template for terminal entries; "
            "$DISPLAY_NAME, $BINARY, $FLAGS and $COMMAND are substituted."
        ),
    )
    language: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "language",
            AliasPath("launch", "language"),
        ),
        description="Locale for localized desktop names (default: $LANG).",
    )

    # Frontend (YAML section: frontend.backend)
    frontend_backend: str = Field(
        default="stdio",
        validation_alias=AliasChoices(
            "frontend_backend",
            AliasPath("frontend", "backend"),
        ),
        description="Rendering backend name.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="WARNING",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    @field_validator("plugin_dirs", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> list[Path]:
        return _normalize_paths(v)

    @field_validator("builtins")
    @classmethod
    def _validate_builtins(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in BUILTIN_PLUGINS]
        if unknown:
            raise ValueError(
                f"unknown built-in plugin(s) {unknown}; available: {sorted(BUILTIN_PLUGINS)}"
            )
        return v

    @field_validator("plugin_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("plugin_timeout_seconds must be > 0")
        return v

    @field_validator("plugin_max_workers")
    @classmethod
    def _validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("plugin_max_workers must be >= 1")
        return v

    @field_validator("max_results")
    @classmethod
    def _validate_max_results(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_results must be >= 1")
        return v

    @field_validator("max_depth")
    @classmethod
    def _validate_max_depth(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("max_depth must be >= 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "plugins": {
                "dirs": [str(p) for p in self.plugin_dirs],
                "builtins": list(self.builtins),
                "timeout_seconds": self.plugin_timeout_seconds,
                "max_workers": self.plugin_max_workers,
            },
            "search": {
                "max_results": self.max_results,
                "max_depth": self.max_depth,
                "include_child_terms": self.include_child_terms,
            },
            "launch": {
                "terminal_runner": self.terminal_runner,
                "language": self.language,
            },
            "frontend": {"backend": self.frontend_backend},
            "logging": {"level": self.log_level, "format": self.log_format},
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read LAUNCHR_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - LAUNCHR_PLUGIN_DIRS='["~/plugins", "/opt/launchr/plugins"]'
    - LAUNCHR_PLUGIN_TIMEOUT_SECONDS
    - LAUNCHR_TERMINAL_RUNNER
    - LAUNCHR_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="LAUNCHR_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    plugin_dirs: Optional[List[Path]] = None
    builtins: Optional[List[str]] = None
    plugin_timeout_seconds: Optional[float] = None
    plugin_max_workers: Optional[int] = None

    max_results: Optional[int] = None
    max_depth: Optional[int] = None
    include_child_terms: Optional[bool] = None

    terminal_runner: Optional[str] = None
    language: Optional[str] = None

    frontend_backend: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    @field_validator("plugin_dirs", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_paths(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
