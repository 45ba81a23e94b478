"""Pydantic validation models for declarative (YAML) plugin files."""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExecFlagsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    is_term: bool = False
    should_fork: bool = False


class EntryModel(BaseModel):
    """One entry as written in a data plugin.

    Only shape is checked here; the entry invariants (non-empty name,
    exec or children) are enforced by ``Entry.create``.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    exec: str = ""
    search_terms: List[str] = Field(default_factory=list)
    children: List["EntryModel"] = Field(default_factory=list)
    exec_flags: Optional[ExecFlagsModel] = None

    def to_fields(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "exec": self.exec,
            "search_terms": list(self.search_terms),
            "children": [c.to_fields() for c in self.children],
            "exec_flags": (
                self.exec_flags.model_dump() if self.exec_flags is not None else None
            ),
        }


class DataPluginModel(BaseModel):
    """Top level of a data plugin file.

    Entries stay raw here so one malformed entry rejects only itself.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    entries: List[Any] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v
