"""
Insight ranking and de-duplication across cards.

Usage flow
----------
1. pool_insights(outputs)
   -> list[RankedInsight]  (every insight, tagged with origin card + category)

2. sort_insights(pooled)
   -> list[RankedInsight]  (total order, stable under input permutation)

3. deduplicate_insights(ranked)
   -> list[RankedInsight]  (restatements of the same metric collapsed)

``rank_insights(outputs, top_n)`` runs all three and truncates.
``extract_action_items(outputs, max_items)`` surfaces the action-kind insights
as follow-up items, bucketed by urgency.

Sort key (ascending)
--------------------
    1. kind rank        action (0) < strength / weakness (1) < observation (2)
    2. insight.priority lower = more important
    3. -signal_strength stronger origin card first
    4. card_id          deterministic tie-break
    5. position         order within the origin card's insight list

Duplicate rule
--------------
Two insights are duplicates when ALL hold:
  - same ``kind``
  - origin cards share the same fusion category
  - their ``related_metric_keys`` share at least one key

Only the higher-ranked one is kept.  Insights that declare no related keys
never collapse; there is nothing to prove they restate the same metric.

Action items
------------
Every action insight that survives de-duplication becomes an ``ActionItem``.
Urgency is ``soon`` for priority 1 and ``monitor`` otherwise.  Items are
ordered by urgency, then by the ranking key above, and truncated to
``max_items``.
"""

from __future__ import annotations

from typing import Optional, Sequence

from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import ActionItem, RankedInsight
from card_synthesis.registry.registry import CardRegistry
from card_synthesis.synthesis.categories import effective_contribution
from card_synthesis.taxonomy.card_taxonomy import (
    INSIGHT_KIND_RANK,
    URGENCY_RANK,
    ActionUrgency,
    InsightKind,
)


def fusion_category(output: CardOutput, registry: Optional[CardRegistry] = None) -> str:
    """Category a card is fused under; falls back to ``card_category``."""
    contribution = effective_contribution(output, registry)
    if contribution is not None:
        return contribution.category
    return output.card_category


def pool_insights(
    outputs:  Sequence[CardOutput],
    registry: Optional[CardRegistry] = None,
) -> list[tuple[RankedInsight, int]]:
    """Collect every insight from every card with its provenance.

    Related metric keys are resolved against the origin card's own metrics;
    keys that do not resolve are left unresolved without error.

    Returns:
        List of ``(insight, position_within_card)`` pairs.
    """
    pooled: list[tuple[RankedInsight, int]] = []
    for output in outputs:
        category = fusion_category(output, registry)
        for position, insight in enumerate(output.insights):
            resolved = tuple(
                metric
                for key in sorted(insight.related_metric_keys)
                if (metric := output.metric_by_key(key)) is not None
            )
            pooled.append((
                RankedInsight(
                    kind=insight.kind,
                    text=insight.text,
                    priority=insight.priority,
                    related_metric_keys=insight.related_metric_keys,
                    related_metrics=resolved,
                    card_id=output.card_id,
                    category=category,
                    signal_strength=output.signal_strength,
                ),
                position,
            ))
    return pooled


def sort_insights(pooled: Sequence[tuple[RankedInsight, int]]) -> list[RankedInsight]:
    """Order pooled insights by the ranking key (see module docstring)."""
    ordered = sorted(
        pooled,
        key=lambda pair: (
            INSIGHT_KIND_RANK[pair[0].kind],
            pair[0].priority,
            -pair[0].signal_strength,
            pair[0].card_id,
            pair[1],
        ),
    )
    return [insight for insight, _ in ordered]


def is_duplicate(a: RankedInsight, b: RankedInsight) -> bool:
    """True when ``a`` and ``b`` restate the same metric in the same category."""
    return (
        a.kind == b.kind
        and a.category == b.category
        and bool(a.related_metric_keys & b.related_metric_keys)
    )


def deduplicate_insights(ranked: Sequence[RankedInsight]) -> list[RankedInsight]:
    """Drop every insight that duplicates a higher-ranked, already-kept one."""
    kept: list[RankedInsight] = []
    for insight in ranked:
        if any(is_duplicate(insight, prior) for prior in kept):
            continue
        kept.append(insight)
    return kept


def rank_insights(
    outputs:  Sequence[CardOutput],
    top_n:    int,
    registry: Optional[CardRegistry] = None,
) -> list[RankedInsight]:
    """Pool, sort, de-duplicate and truncate insights across all cards.

    Args:
        outputs:  Accepted card outputs.
        top_n:    Maximum insights returned.
        registry: Optional registry (affects fusion category of cards that
                  emit no score contribution).

    Returns:
        Up to ``top_n`` insights with 1-based ``rank`` set, in ranked order.
    """
    ranked = deduplicate_insights(sort_insights(pool_insights(outputs, registry)))
    return [
        insight.model_copy(update={"rank": rank})
        for rank, insight in enumerate(ranked[:top_n], start=1)
    ]


def action_urgency(priority: int) -> ActionUrgency:
    return ActionUrgency.SOON if priority == 1 else ActionUrgency.MONITOR


def extract_action_items(
    outputs:   Sequence[CardOutput],
    max_items: int,
    registry:  Optional[CardRegistry] = None,
) -> list[ActionItem]:
    """Collect action insights across all cards, most urgent first.

    Args:
        outputs:   Accepted card outputs.
        max_items: Maximum items returned.
        registry:  Optional registry (affects the reported fusion category).

    Returns:
        Up to ``max_items`` action items.  Within one urgency bucket the
        insight ranking order is kept (``sorted`` is stable).
    """
    actions = [
        insight
        for insight in deduplicate_insights(sort_insights(pool_insights(outputs, registry)))
        if insight.kind == InsightKind.ACTION
    ]
    items = [
        ActionItem(
            action=insight.text,
            urgency=action_urgency(insight.priority),
            card_id=insight.card_id,
            category=insight.category,
            priority=insight.priority,
        )
        for insight in actions
    ]
    items.sort(key=lambda item: URGENCY_RANK[item.urgency])
    return items[:max_items]
