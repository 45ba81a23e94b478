"""Fuzzy subsequence matching and ranking over a Corpus.

Pure computation: no I/O, no state beyond the scoring weights, so a
query can be recomputed on every keystroke and from any thread.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from launchr.domain.corpus import Corpus, EntryId, normalize_term

# Characters after which a match counts as a word start.
SEPARATORS = frozenset(" -_/.:")

_MAX_TERM_LEN = 999
_UNREACHABLE = -(1 << 62)


@dataclass(frozen=True)
class MatchWeights:
    """Scoring weights for one matched query character.

    ``consecutive`` is multiplied by the length of the run the character
    extends; ``gap`` is subtracted per skipped term character between
    two matched characters (skips before the first match are free).
    """

    match: int = 16
    consecutive: int = 8
    start: int = 32
    boundary: int = 8
    gap: int = 1


class Match(NamedTuple):
    entry_id: EntryId
    score: int


def normalize_query(text: str) -> str:
    """Strip, collapse inner whitespace, transliterate and case-fold."""
    return normalize_term(" ".join(text.split()))


def match_quality(query: str, term: str, weights: MatchWeights = MatchWeights()) -> int | None:
    """Best alignment score of ``query`` as a subsequence of ``term``.

    Both arguments must already be normalized. Returns ``None`` when
    ``query`` is not a subsequence of ``term``.
    """
    m, n = len(query), len(term)
    if m == 0:
        return 0
    if m > n:
        return None

    bonus = [_position_bonus(term, j, weights) for j in range(n)]

    # prev[j]: best score with the previous query char matched at term[j];
    # prev_run[j]: length of the contiguous run ending there
    prev = [
        weights.match + bonus[j] if term[j] == query[0] else _UNREACHABLE
        for j in range(n)
    ]
    prev_run = [1] * n

    for i in range(1, m):
        cur = [_UNREACHABLE] * n
        cur_run = [0] * n
        qc = query[i]
        # max over k < j-1 of prev[k] + gap * k, so that jumping from k
        # to j costs gap * (j - k - 1)
        best_jump = _UNREACHABLE
        for j in range(i, n):
            k = j - 2
            if k >= 0 and prev[k] != _UNREACHABLE:
                best_jump = max(best_jump, prev[k] + weights.gap * k)
            if term[j] != qc:
                continue

            base = weights.match + bonus[j]
            if prev[j - 1] != _UNREACHABLE:
                run = prev_run[j - 1]
                cur[j] = prev[j - 1] + base + weights.consecutive * run
                cur_run[j] = run + 1
            if best_jump != _UNREACHABLE:
                jumped = best_jump - weights.gap * (j - 1) + base
                if jumped > cur[j]:
                    cur[j] = jumped
                    cur_run[j] = 1
        prev, prev_run = cur, cur_run

    best = max(prev)
    return None if best == _UNREACHABLE else best


def score_term(query: str, term: str, weights: MatchWeights = MatchWeights()) -> int | None:
    """Combined score: alignment quality, then shorter terms first."""
    quality = match_quality(query, term, weights)
    if quality is None:
        return None
    return max(quality, 0) * 1000 + (_MAX_TERM_LEN - min(len(term), _MAX_TERM_LEN))


def _position_bonus(term: str, j: int, weights: MatchWeights) -> int:
    if j == 0:
        return weights.start
    if term[j - 1] in SEPARATORS:
        return weights.boundary
    return 0


class Matcher:
    """Ranks corpus records against query text."""

    def __init__(self, weights: MatchWeights | None = None) -> None:
        self._weights = weights or MatchWeights()

    @property
    def weights(self) -> MatchWeights:
        return self._weights

    def query(self, corpus: Corpus, text: str, limit: int | None = None) -> list[Match]:
        """Ranked matches, best first; ties keep corpus order.

        An empty (or whitespace-only) query returns every record in
        corpus order with score 0; ``limit`` only applies to ranked results.
        """
        needle = normalize_query(text)
        if not needle:
            return [Match(r.entry_id, 0) for r in corpus]

        scored: list[tuple[int, int, EntryId]] = []
        for position, record in enumerate(corpus):
            best: int | None = None
            for term in record.normalized_terms:
                s = score_term(needle, term, self._weights)
                if s is not None and (best is None or s > best):
                    best = s
            if best is not None:
                scored.append((-best, position, record.entry_id))

        scored.sort()
        if limit is not None:
            scored = scored[:limit]
        return [Match(entry_id, -neg_score) for neg_score, _, entry_id in scored]
