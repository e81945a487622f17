"""
Producer-side helpers for building ``CardOutput`` values.

Cards are free functions ``compute(symbol_data) -> CardOutput``; these helpers
keep the mapping from a card's raw 0–100 score to the contract vocabulary
consistent across independently written cards.

Mappings
--------
score_to_sentiment(score):
    score >= 60 → bullish,  40 <= score < 60 → neutral,  score < 40 → bearish

score_to_signal_strength(score, max_score=100):
    round_half_up(score × 5 / max_score), clamped to [1, 5]

completeness_to_confidence(ratio):
    ratio >= 0.9 → high,  0.7 <= ratio < 0.9 → medium,  otherwise low
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from card_synthesis.models.card import Insight, MetricReading, MetricValue, ScoreContribution
from card_synthesis.taxonomy.card_taxonomy import (
    MAX_SIGNAL_STRENGTH,
    MIN_SIGNAL_STRENGTH,
    Confidence,
    InsightKind,
    MetricFormat,
    MetricQuality,
    Sentiment,
)


def score_to_sentiment(score: float) -> Sentiment:
    if score >= 60:
        return Sentiment.BULLISH
    if score >= 40:
        return Sentiment.NEUTRAL
    return Sentiment.BEARISH


def score_to_signal_strength(score: float, max_score: float = 100.0) -> int:
    """Convert a score to a 1–5 signal strength.

    Raises:
        ValueError: If ``max_score`` is not positive.
    """
    if max_score <= 0:
        raise ValueError(f"max_score must be > 0, got {max_score}.")
    scaled = math.floor(score * MAX_SIGNAL_STRENGTH / max_score + 0.5)
    return max(MIN_SIGNAL_STRENGTH, min(MAX_SIGNAL_STRENGTH, scaled))


def completeness_to_confidence(ratio: float) -> Confidence:
    """Confidence from the fraction of inputs a card actually had available."""
    if ratio >= 0.9:
        return Confidence.HIGH
    if ratio >= 0.7:
        return Confidence.MEDIUM
    return Confidence.LOW


def make_metric(
    label: str,
    key: str,
    value: MetricReading,
    quality: MetricQuality | str = MetricQuality.NEUTRAL,
    format: MetricFormat | str = MetricFormat.NUMBER,
    priority: int = 2,
) -> MetricValue:
    return MetricValue(
        label=label, key=key, value=value, quality=quality, format=format, priority=priority,
    )


def make_insight(
    kind: InsightKind | str,
    text: str,
    priority: int = 2,
    related_metric_keys: Optional[Iterable[str]] = None,
) -> Insight:
    return Insight(
        kind=kind,
        text=text,
        priority=priority,
        related_metric_keys=frozenset(related_metric_keys or ()),
    )


def make_contribution(category: str, score: float, weight: float = 1.0) -> ScoreContribution:
    """Build a ``ScoreContribution``, clamping ``score`` into [0, 100]."""
    return ScoreContribution(
        category=category, score=max(0.0, min(100.0, score)), weight=weight,
    )
