"""
Category normalization and the overall composite score.

Category score (weight-normalized mean, clamped to 0–100)
---------------------------------------------------------
    category_score = Σ(score_i × weight_i) / Σ(weight_i)

over every accepted card whose effective contribution names the category.
A single card with weight 1.0 next to near-zero-weight peers sets the
category score almost on its own; weight is the author's conviction signal.

Insufficient data
-----------------
A category with zero total weight (all contributing weights are 0, or no card
reported into it) gets ``status = insufficient_data`` and ``score = None``.
It is NEVER defaulted to a midpoint.  Every category listed in the composite
weight table appears in the result, reported or not.

Category sentiment
------------------
A sufficient category reads bullish above ``category_bullish_above`` (60),
bearish below ``category_bearish_below`` (40), and neutral in between.  An
insufficient category has ``sentiment = None``.

Overall score
-------------
    overall = Σ(category_score × composite_weight) / Σ(composite_weight)

over sufficient categories only.  Categories missing from the table use
``SynthesisConfig.unlisted_category_weight``.  ``None`` when no sufficient
category carries positive composite weight.

Effective contribution
----------------------
A card's own ``score_contribution`` always wins.  A card that emits none but
is present in the registry contributes ``50 + 10 × signed strength`` (clamped)
at its registry category and weight.  Otherwise it does not score.

Determinism
-----------
Sums use ``math.fsum`` over cards sorted by ``card_id`` so results are
identical under any permutation of the input batch.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Mapping, Optional, Sequence

from card_synthesis.config import SynthesisConfig
from card_synthesis.models.card import CardOutput, ScoreContribution
from card_synthesis.models.composite import CategoryScore
from card_synthesis.registry.registry import CardRegistry
from card_synthesis.taxonomy.card_taxonomy import SENTIMENT_SIGN, CategoryStatus, Sentiment

logger = logging.getLogger(__name__)

_FALLBACK_MIDPOINT = 50.0
_FALLBACK_POINTS_PER_STRENGTH = 10.0


def effective_contribution(
    output: CardOutput,
    registry: Optional[CardRegistry] = None,
) -> Optional[ScoreContribution]:
    """Return the contribution used for ``output`` during category scoring.

    Args:
        output:   An accepted card output.
        registry: Static card registry used for the fallback contribution.

    Returns:
        The card's own contribution, a registry-derived fallback, or ``None``.
    """
    spec = registry.get(output.card_id) if registry is not None else None

    if output.score_contribution is not None:
        if spec is not None and spec.category != output.score_contribution.category:
            logger.debug(
                "Card %s reports category '%s' but registry lists '%s'; using reported.",
                output.card_id, output.score_contribution.category, spec.category,
            )
        return output.score_contribution

    if spec is None:
        return None

    signed = SENTIMENT_SIGN[output.sentiment] * output.signal_strength
    score = _clamp(_FALLBACK_MIDPOINT + _FALLBACK_POINTS_PER_STRENGTH * signed, 0.0, 100.0)
    return ScoreContribution(category=spec.category, score=score, weight=spec.weight)


def classify_category_sentiment(
    score:  Optional[float],
    config: SynthesisConfig,
) -> Optional[Sentiment]:
    """Band a category score into a direction; ``None`` passes through."""
    if score is None:
        return None
    if score > config.category_bullish_above:
        return Sentiment.BULLISH
    if score < config.category_bearish_below:
        return Sentiment.BEARISH
    return Sentiment.NEUTRAL


def compute_category_scores(
    outputs:           Sequence[CardOutput],
    composite_weights: Mapping[str, float],
    config:            SynthesisConfig,
    registry:          Optional[CardRegistry] = None,
) -> dict[str, CategoryScore]:
    """Group accepted outputs by contribution category and normalize each group.

    Args:
        outputs:           Accepted card outputs.
        composite_weights: Category -> weight in the overall score.
        config:            Fusion policy (rounding, unlisted category weight).
        registry:          Optional registry for fallback contributions.

    Returns:
        Dict of category -> ``CategoryScore``, keys in sorted order.
    """
    by_category: dict[str, list[tuple[str, ScoreContribution]]] = defaultdict(list)
    for output in sorted(outputs, key=lambda o: o.card_id):
        contribution = effective_contribution(output, registry)
        if contribution is None:
            continue
        by_category[contribution.category].append((output.card_id, contribution))

    categories = sorted(set(composite_weights) | set(by_category))
    result: dict[str, CategoryScore] = {}

    for category in categories:
        members = by_category.get(category, [])
        composite_weight = composite_weights.get(category, config.unlisted_category_weight)
        total_weight = math.fsum(c.weight for _, c in members)
        card_ids = tuple(card_id for card_id, _ in members)

        if total_weight <= 0.0:
            result[category] = CategoryScore(
                category=category,
                score=None,
                total_weight=0.0,
                card_count=len(members),
                composite_weight=composite_weight,
                status=CategoryStatus.INSUFFICIENT_DATA,
                card_ids=card_ids,
            )
            continue

        weighted = math.fsum(c.score * c.weight for _, c in members) / total_weight
        score = round(_clamp(weighted, 0.0, 100.0), config.score_decimals)
        result[category] = CategoryScore(
            category=category,
            score=score,
            total_weight=round(total_weight, 6),
            card_count=len(members),
            composite_weight=composite_weight,
            status=CategoryStatus.OK,
            sentiment=classify_category_sentiment(score, config),
            card_ids=card_ids,
        )

    return result


def compute_overall_score(
    category_scores: Mapping[str, CategoryScore],
    config:          SynthesisConfig,
) -> Optional[float]:
    """Combine sufficient category scores using their composite weights.

    Returns:
        Overall score in [0, 100], or ``None`` when there is no usable evidence.
    """
    usable = [
        cs for _, cs in sorted(category_scores.items())
        if cs.is_sufficient and cs.score is not None and cs.composite_weight > 0.0
    ]
    total = math.fsum(cs.composite_weight for cs in usable)
    if total <= 0.0:
        return None
    weighted = math.fsum(cs.score * cs.composite_weight for cs in usable) / total
    return round(_clamp(weighted, 0.0, 100.0), config.score_decimals)


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
