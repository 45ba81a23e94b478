"""Loading plugin sources: Python scripts and YAML data files."""

from __future__ import annotations

import ast
from pathlib import Path
from types import CodeType

import structlog
import yaml
from pydantic import ValidationError

from launchr.domain.entries import Entry
from launchr.domain.exceptions import InvalidEntry, RegistrationError, ScriptLoadError
from launchr.domain.plugins import PluginOutput

from .script_guard import ScriptGuardViolation, check_script
from .validation_schema import DataPluginModel, EntryModel

log = structlog.get_logger(__name__)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ScriptLoadError(f"cannot read {path}: {e}") from e


def compile_script(path: Path) -> CodeType:
    """Read, guard and compile a plugin script.

    Raises:
        ScriptLoadError: unreadable source, syntax error, or a construct
            outside the plugin capability surface.
    """
    source = _read_source(path)
    try:
        tree = ast.parse(source, filename=str(path), mode="exec")
    except SyntaxError as e:
        raise ScriptLoadError(
            f"SyntaxError in {path} line {e.lineno}: {e.msg}"
        ) from e
    try:
        check_script(tree)
    except ScriptGuardViolation as e:
        raise ScriptLoadError(f"{path}: {e}") from e
    try:
        return compile(tree, str(path), "exec")
    except (SyntaxError, ValueError) as e:
        raise ScriptLoadError(f"cannot compile {path}: {e}") from e


def load_data_plugin(path: Path) -> PluginOutput:
    """Load and validate a YAML data plugin.

    Raises:
        ScriptLoadError: unreadable file or invalid YAML.
        RegistrationError: the document is not a valid plugin mapping.
    """
    raw = _read_source(path)
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ScriptLoadError(f"invalid YAML in {path}: {e}") from e

    if data is None:
        raise RegistrationError("YAML file is empty")
    if not isinstance(data, dict):
        raise RegistrationError("YAML root must be a mapping/object")

    try:
        model = DataPluginModel.model_validate(data)
    except ValidationError as e:
        log.debug(
            "data_plugin_validation_failed",
            plugin_file=str(path),
            error_details=e.errors(include_url=False),
        )
        raise RegistrationError(str(e)) from e

    entries: list[Entry] = []
    rejected: list[InvalidEntry] = []
    for idx, raw_entry in enumerate(model.entries):
        try:
            entries.append(_entry_from_model(raw_entry))
        except InvalidEntry as e:
            rejected.append(InvalidEntry(f"entry #{idx}: {e}"))
    return PluginOutput(name=model.name, entries=tuple(entries), rejected=tuple(rejected))


def _entry_from_model(raw: object) -> Entry:
    if isinstance(raw, str):
        raw = {"exec": raw}
    try:
        model = EntryModel.model_validate(raw)
    except ValidationError as e:
        raise InvalidEntry(
            "; ".join(
                f"{'.'.join(map(str, err['loc'])) or 'entry'}: {err['msg']}"
                for err in e.errors(include_url=False)
            )
        ) from e
    return _freeze_fields(model.to_fields())


def _freeze_fields(fields: dict) -> Entry:
    children = [_freeze_fields(c) for c in fields.pop("children")]
    return Entry.create(children=children, **fields)
