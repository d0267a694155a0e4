"""
Destination Suggestions.

Fuzzy name matching over mapped systems and the global catalog, used for
destination autocomplete and for resolving loosely typed pin names.

Scoring (query and candidate compared lower-cased):
- exact match scores 100 outright; everything else is capped at 99
- prefix match +60
- substring match +40, minus 1.5 per leading character skipped
- edit-distance similarity scaled to 0..35
- sequential match bonus: +4 per query character found in order,
  +2 more when it directly follows the previous hit, -3 when missing
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ...core.constants import MIN_SUGGESTION_QUERY, MIN_SUGGESTION_SCORE
from ...core.logging import get_logger

if TYPE_CHECKING:
    from ...universe.catalog import SystemCatalog
    from ...universe.graph import MapGraph

logger = get_logger(__name__)

EXACT_MATCH_SCORE = 100.0
# Non-exact matches never reach an exact match
NEAR_MATCH_CEILING = 99.0


# =============================================================================
# Scoring
# =============================================================================


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Calculate Levenshtein edit distance between two strings.

    Uses O(min(m,n)) space dynamic programming approach.
    """
    if s1 == s2:
        return 0
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current = [i + 1]
        for j, c2 in enumerate(s2):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j + 1] + 1, current[j] + 1, previous[j] + cost))
        previous = current

    return previous[-1]


def sequential_match_bonus(candidate: str, query: str) -> float:
    """Reward query characters that appear in candidate in the same order."""
    if not candidate or not query:
        return 0.0

    score = 0.0
    last_index = -1
    for char in query:
        next_index = candidate.find(char, last_index + 1)
        if next_index == -1:
            score -= 3
            continue
        score += 4
        if next_index == last_index + 1:
            score += 2
        last_index = next_index
    return score


def fuzzy_score(candidate: str, query: str) -> float:
    """
    Score how well a lower-cased candidate name matches a lower-cased query.

    Returns:
        EXACT_MATCH_SCORE for identical strings, -inf for an empty
        candidate, otherwise the combined heuristic score capped at
        NEAR_MATCH_CEILING
    """
    if not candidate:
        return float("-inf")
    if candidate == query:
        return EXACT_MATCH_SCORE

    score = 0.0
    if candidate.startswith(query):
        score += 60
    index = candidate.find(query)
    if index >= 0:
        score += 40 - index * 1.5

    max_len = max(len(candidate), len(query)) or 1
    similarity = 1 - levenshtein_distance(query, candidate) / max_len
    score += similarity * 35
    score += sequential_match_bonus(candidate, query)
    return min(score, NEAR_MATCH_CEILING)


# =============================================================================
# Index
# =============================================================================


@dataclass(frozen=True)
class Suggestion:
    """One autocomplete entry."""

    name: str
    score: float
    is_on_map: bool
    wormhole_class: str | None = None
    security_status: float | None = None
    id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "score": round(self.score, 2),
            "isOnMap": self.is_on_map,
            "wormholeClass": self.wormhole_class,
            "securityStatus": self.security_status,
            "id": self.id,
        }


class SuggestionIndex:
    """
    Fuzzy lookup across one map graph and a system catalog.

    Built per query from the planner's current state; holds no cache of
    its own so graph swaps are picked up immediately.
    """

    def __init__(self, graph: MapGraph, catalog: SystemCatalog) -> None:
        self.graph = graph
        self.catalog = catalog

    def _candidates(self) -> dict[str, bool]:
        """Canonical name -> on-map flag, placeholders excluded."""
        names: dict[str, bool] = {}
        for name, node in self.graph.nodes.items():
            if not node.is_placeholder:
                names[name] = True
        for name in self.graph.name_to_idx:
            if name not in self.graph.nodes:
                names.setdefault(name, True)
        for name in self.catalog.records:
            names.setdefault(name, False)
        return names

    def suggest(self, query: str | None, limit: int = 8) -> list[Suggestion]:
        """
        Rank systems matching a partial name.

        Args:
            query: Partial system name, any case
            limit: Maximum results

        Returns:
            Suggestions sorted by score (desc), mapped systems first on
            equal score, then by name. Empty for queries shorter than
            two characters.
        """
        normalized = query.strip().lower() if isinstance(query, str) else ""
        if len(normalized) < MIN_SUGGESTION_QUERY or limit <= 0:
            return []

        scored: list[Suggestion] = []
        seen: set[str] = set()

        for name, on_map in self._candidates().items():
            lower = name.lower()
            if lower in seen:
                continue
            score = fuzzy_score(lower, normalized)
            if score < MIN_SUGGESTION_SCORE:
                continue
            seen.add(lower)
            scored.append(self._build(name, score, on_map))

        scored.sort(key=lambda s: (-s.score, not s.is_on_map, s.name))
        logger.debug("Suggestions for %r: %d match(es)", normalized, len(scored))
        return scored[:limit]

    def best_match(self, query: str | None) -> Suggestion | None:
        """Single best suggestion, or None when nothing clears the threshold."""
        results = self.suggest(query, limit=1)
        return results[0] if results else None

    def _build(self, name: str, score: float, on_map: bool) -> Suggestion:
        record = self.catalog.get_exact(name) or self.catalog.get(name)
        node = self.graph.get_node(name)
        wormhole_class = (node.wormhole_class if node else None) or (
            record.wormhole_class if record else None
        )
        return Suggestion(
            name=name,
            score=score,
            is_on_map=on_map,
            wormhole_class=wormhole_class,
            security_status=record.security_status if record else None,
            id=record.id if record else None,
        )
