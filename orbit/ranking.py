"""Ranker — scores a whole collection and picks the visible "N things".

``all`` comes back sorted by score (highest first), ties broken by creation
time and then id so repeated passes over the same input agree exactly.
Quieted items only take visible slots that non-quieted items can't fill.
"""

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from orbit.config import DEFAULTS, ScoringWeights
from orbit.models import Context, Item, ItemComputed
from orbit.scoring import compute_relevance, quiet_active, score_to_distance


@dataclass(frozen=True)
class RankResult:
    all: tuple[Item, ...]
    visible: tuple[Item, ...]

    @property
    def visible_ids(self) -> list[str]:
        return [item.id for item in self.visible]


def score_item(item: Item, context: Context, weights: ScoringWeights = None,
               decay_days: Optional[float] = None) -> Item:
    """Return a copy of ``item`` with freshly computed score, distance and reasons."""
    relevance = compute_relevance(item, context, weights=weights, decay_days=decay_days)
    computed = ItemComputed(
        score=relevance.score,
        distance=score_to_distance(relevance.score),
        reasons=tuple(relevance.reasons),
        updated_at=context.now,
    )
    return replace(item, computed=computed)


def _sort_key(item: Item):
    return (-item.computed.score, item.signals.created_at, item.id)


def select_visible(ranked: Iterable[Item], context: Context, max_visible: int) -> list[Item]:
    """Take the top ``max_visible`` items, letting quieted ones in only as filler."""
    ranked = list(ranked)
    prime = [item for item in ranked if not quiet_active(item, context)]
    quieted = [item for item in ranked if quiet_active(item, context)]
    visible = prime[:max_visible]
    if len(visible) < max_visible:
        visible += quieted[:max_visible - len(visible)]
    return visible


def rank_items(
    items: Iterable[Item],
    context: Context,
    max_visible: Optional[int] = None,
    weights: ScoringWeights = None,
    decay_days: Optional[float] = None,
) -> RankResult:
    """Score every item and select the visible subset.

    Input items are not modified. Removed items must already be filtered out
    by the caller.
    """
    if max_visible is None:
        max_visible = DEFAULTS.max_visible
    scored = [score_item(item, context, weights, decay_days) for item in items]
    scored.sort(key=_sort_key)
    visible = select_visible(scored, context, max_visible)
    return RankResult(all=tuple(scored), visible=tuple(visible))
