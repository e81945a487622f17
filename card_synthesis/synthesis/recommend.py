"""
Follow-up card recommendations and tag aggregation.

Recommended cards
-----------------
The union of ``suggested_cards`` across accepted outputs, with:
  - dangling references dropped (ids unknown to, or disabled in, the registry);
  - cards already present in the batch dropped (nothing new to explore);
  - duplicates merged.

Ordering favors consensus:
    1. number of distinct producers suggesting the card (desc)
    2. best (earliest) position in any suggesting list  (asc)
    3. card_id                                           (asc)

When no registry is supplied every referenced id is treated as known.

Tags
----
Most frequent tags across accepted cards, ordered by count desc then tag asc.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence

from card_synthesis.models.card import CardOutput
from card_synthesis.registry.registry import CardRegistry

logger = logging.getLogger(__name__)


def recommend_cards(
    outputs:  Sequence[CardOutput],
    limit:    int,
    registry: Optional[CardRegistry] = None,
) -> list[str]:
    """Return up to ``limit`` follow-up card ids suggested by ``outputs``."""
    present = {o.card_id for o in outputs}
    suggesters: dict[str, set[str]] = {}
    best_position: dict[str, int] = {}

    for output in outputs:
        for position, card_id in enumerate(output.suggested_cards):
            if card_id in present:
                continue
            if registry is not None and not registry.is_recommendable(card_id):
                logger.debug(
                    "Dropping dangling suggestion '%s' from card %s.",
                    card_id, output.card_id,
                )
                continue
            suggesters.setdefault(card_id, set()).add(output.card_id)
            best_position[card_id] = min(position, best_position.get(card_id, position))

    ranked = sorted(
        suggesters,
        key=lambda cid: (-len(suggesters[cid]), best_position[cid], cid),
    )
    return ranked[:limit]


def aggregate_tags(outputs: Sequence[CardOutput], limit: int) -> list[str]:
    """Return the ``limit`` most frequent tags across ``outputs``."""
    counts: Counter[str] = Counter()
    for output in outputs:
        counts.update(output.tags)
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return [tag for tag, _ in ranked[:limit]]


def filter_by_tags(
    outputs: Sequence[CardOutput],
    tags:    Optional[set[str]],
) -> list[CardOutput]:
    """Keep outputs carrying at least one of ``tags``; ``None`` keeps all."""
    if not tags:
        return list(outputs)
    return [o for o in outputs if o.tags & tags]
