"""Flattened, searchable view over all successfully harvested entries.

A Corpus is built once per registry run and never mutated afterwards;
a refresh produces a new Corpus.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from unidecode import unidecode

from .entries import Entry
from .plugins import PluginDiagnostic


def normalize_term(text: str) -> str:
    """Transliterate to ASCII and case-fold."""
    return unidecode(text).casefold()


@dataclass(frozen=True, order=True)
class EntryId:
    """Stable entry identifier: plugin position plus path in its tree.

    Ordering is depth-first flatten order.
    """

    plugin_index: int
    path: tuple[int, ...]

    @property
    def depth(self) -> int:
        return len(self.path) - 1

    def __str__(self) -> str:
        return f"{self.plugin_index}:{'.'.join(map(str, self.path))}"


@dataclass(frozen=True)
class CorpusRecord:
    entry_id: EntryId
    entry: Entry
    plugin: str
    terms: tuple[str, ...]
    normalized_terms: tuple[str, ...]


@dataclass(frozen=True)
class PluginEntries:
    """Entries one plugin contributed, in plugin order."""

    plugin_index: int
    plugin: str
    entries: tuple[Entry, ...]


class Corpus:
    """Immutable, ordered collection of corpus records."""

    __slots__ = ("_records", "_by_id", "_diagnostics", "_generation")

    def __init__(
        self,
        records: Sequence[CorpusRecord] = (),
        *,
        diagnostics: Sequence[PluginDiagnostic] = (),
        generation: int = 0,
    ) -> None:
        self._records: tuple[CorpusRecord, ...] = tuple(records)
        self._by_id: dict[EntryId, CorpusRecord] = {
            r.entry_id: r for r in self._records
        }
        self._diagnostics: tuple[PluginDiagnostic, ...] = tuple(diagnostics)
        self._generation = generation

    @classmethod
    def empty(cls) -> Corpus:
        return cls()

    @classmethod
    def from_plugin_entries(
        cls,
        contributions: Sequence[PluginEntries],
        *,
        diagnostics: Sequence[PluginDiagnostic] = (),
        max_depth: int | None = None,
        include_child_terms: bool = False,
        generation: int = 0,
    ) -> Corpus:
        """Flatten entry forests depth-first in contribution order."""
        records: list[CorpusRecord] = []
        for contribution in contributions:
            for idx, entry in enumerate(contribution.entries):
                records.extend(
                    _flatten(
                        entry,
                        EntryId(contribution.plugin_index, (idx,)),
                        contribution.plugin,
                        max_depth=max_depth,
                        include_child_terms=include_child_terms,
                    )
                )
        return cls(records, diagnostics=diagnostics, generation=generation)

    @property
    def records(self) -> tuple[CorpusRecord, ...]:
        return self._records

    @property
    def diagnostics(self) -> tuple[PluginDiagnostic, ...]:
        return self._diagnostics

    @property
    def generation(self) -> int:
        return self._generation

    def ids(self) -> list[EntryId]:
        return [r.entry_id for r in self._records]

    def get(self, entry_id: EntryId) -> CorpusRecord | None:
        return self._by_id.get(entry_id)

    def __getitem__(self, entry_id: EntryId) -> CorpusRecord:
        return self._by_id[entry_id]

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._by_id

    def __iter__(self) -> Iterator[CorpusRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return (
            f"Corpus(records={len(self._records)}, "
            f"diagnostics={len(self._diagnostics)}, generation={self._generation})"
        )


def _flatten(
    root: Entry,
    root_id: EntryId,
    plugin: str,
    *,
    max_depth: int | None,
    include_child_terms: bool,
) -> Iterator[CorpusRecord]:
    stack: list[tuple[EntryId, Entry]] = [(root_id, root)]
    while stack:
        entry_id, entry = stack.pop()
        terms = entry.search_terms
        if include_child_terms and entry.children:
            terms = terms + tuple(_descendant_terms(entry))
        yield CorpusRecord(
            entry_id=entry_id,
            entry=entry,
            plugin=plugin,
            terms=terms,
            normalized_terms=_unique_normalized(terms),
        )
        if max_depth is not None and entry_id.depth >= max_depth:
            continue
        # reversed so the first child is popped first
        for idx in range(len(entry.children) - 1, -1, -1):
            child_id = EntryId(entry_id.plugin_index, (*entry_id.path, idx))
            stack.append((child_id, entry.children[idx]))


def _descendant_terms(entry: Entry) -> Iterator[str]:
    for child in entry.children:
        yield from child.search_terms
        yield from _descendant_terms(child)


def _unique_normalized(terms: Sequence[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for term in terms:
        norm = normalize_term(term)
        if norm and norm not in seen:
            seen.add(norm)
            out.append(norm)
    return tuple(out)
