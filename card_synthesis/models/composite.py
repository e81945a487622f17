"""
Composite (fused) result models.

``CompositeResult`` is the single per-symbol artifact the synthesis engine
produces from a batch of ``CardOutput`` values.  It is created once per
fusion run, consumed by the presentation layer, and replaced (never
mutated) by the next run.

Besides the verdict itself, every composite carries a diagnostic trail:
  - ``skipped_cards``          : producers rejected at the fusion boundary.
  - ``category_scores[*].status``: ``insufficient_data`` for categories with
                                  no usable weight.

Together these let a consumer tell "low confidence because the evidence
disagrees" apart from "low confidence because the evidence is missing".
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

from card_synthesis.models.card import MetricValue, MetricReading
from card_synthesis.taxonomy.card_taxonomy import (
    ActionUrgency,
    CategoryStatus,
    Confidence,
    InsightKind,
    MetricQuality,
    Sentiment,
)

_RESULT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class SkippedCard(BaseModel):
    """A producer output excluded from fusion, with the reason why."""

    model_config = _RESULT_CONFIG

    card_id: str
    reason: str


class CategoryScore(BaseModel):
    """Normalized score for one fusion category.

    Attributes:
        category: Fusion grouping key.
        score: Weight-normalized mean in [0, 100]; ``None`` when insufficient.
        total_weight: Sum of contributing card weights.
        card_count: Number of accepted cards reporting into this category.
        composite_weight: Weight of this category in the overall score.
        status: ``ok`` or ``insufficient_data``.
        sentiment: Direction read off ``score`` (bullish above 60, bearish
            below 40 by default); ``None`` when insufficient, so missing
            evidence never reads as neutral.
        card_ids: Contributing card ids, sorted.
    """

    model_config = _RESULT_CONFIG

    category: str
    score: Optional[float] = None
    total_weight: float = 0.0
    card_count: int = 0
    composite_weight: float = 0.0
    status: CategoryStatus = CategoryStatus.INSUFFICIENT_DATA
    sentiment: Optional[Sentiment] = None
    card_ids: tuple[str, ...] = ()

    @property
    def is_sufficient(self) -> bool:
        return self.status == CategoryStatus.OK


class SentimentVerdict(BaseModel):
    """Outcome of sentiment reconciliation across accepted cards.

    Attributes:
        sentiment: Overall direction after the deadband is applied.
        confidence: Derived from agreement, not from the magnitude of the sum.
        signed_sum: Σ(+/- signal_strength) across accepted cards.
        deadband: Absolute threshold below which the sum is neutral.
        agreement: Fraction of cards whose sentiment matches ``sentiment``.
        card_count: Number of cards considered.
    """

    model_config = _RESULT_CONFIG

    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: Confidence = Confidence.LOW
    signed_sum: int = 0
    deadband: float = 0.0
    agreement: float = 0.0
    card_count: int = 0


class RankedInsight(BaseModel):
    """An insight pooled from one card, tagged with its provenance.

    ``related_metrics`` holds only the links that resolved against the origin
    card's metrics; unresolved keys remain visible in ``related_metric_keys``.
    """

    model_config = _RESULT_CONFIG

    kind: InsightKind
    text: str
    priority: int
    related_metric_keys: frozenset[str] = frozenset()
    related_metrics: tuple[MetricValue, ...] = ()
    card_id: str
    category: str
    signal_strength: int
    rank: int = 0

    @field_serializer("related_metric_keys")
    def serialize_related_keys(self, v: frozenset[str]) -> list[str]:
        return sorted(v)


class RankedMetric(BaseModel):
    """A metric surfaced across all cards, tagged with its origin card."""

    model_config = _RESULT_CONFIG

    label: str
    key: str
    value: MetricReading = None
    quality: MetricQuality
    priority: int
    card_id: str
    rank: int = 0


class ActionItem(BaseModel):
    """An action insight surfaced for follow-up, with its urgency bucket."""

    model_config = _RESULT_CONFIG

    action: str
    urgency: ActionUrgency
    card_id: str
    category: str
    priority: int


class ConflictReport(BaseModel):
    """Bullish and bearish cards disagreeing inside one fusion category."""

    model_config = _RESULT_CONFIG

    category: str
    bullish_cards: tuple[str, ...]
    bearish_cards: tuple[str, ...]
    resolution: str


class CardSummary(BaseModel):
    """Compact per-card digest for the presentation layer."""

    model_config = _RESULT_CONFIG

    card_id: str
    category: Optional[str] = None
    sentiment: Sentiment
    confidence: Confidence
    signal_strength: int
    score: Optional[float] = None
    headline: str = ""
    top_insight: str = ""


class CompositeResult(BaseModel):
    """The fused per-symbol verdict.

    Attributes:
        symbol: Target symbol of the batch.
        as_of: Minimum ``as_of`` across accepted cards (the composite is only
            as fresh as its stalest input); ``None`` when nothing was accepted.
        category_scores: Category -> normalized score, insufficient ones flagged.
        overall_score: Composite-weighted mean of sufficient categories, or
            ``None`` when no category had usable evidence.
        overall_sentiment / overall_confidence: From sentiment reconciliation.
        sentiment_detail: Full reconciliation breakdown.
        top_insights: Ranked, de-duplicated insights (top-N).
        top_metrics: Highest-priority metrics across all cards (top-N).
        conflicts: Categories where bullish and bearish cards disagree.
        action_items: Action insights ordered by urgency (top-N).
        recommended_cards: Suggested follow-up card ids.
        card_summaries: One digest per accepted card, sorted by card id.
        tags: Most frequent tags across accepted cards.
        accepted_cards: Card ids that were fused, sorted.
        skipped_cards: Rejected producers with reasons.
    """

    model_config = _RESULT_CONFIG

    symbol: str
    as_of: Optional[datetime] = None
    category_scores: dict[str, CategoryScore] = {}
    overall_score: Optional[float] = None
    overall_sentiment: Sentiment = Sentiment.NEUTRAL
    overall_confidence: Confidence = Confidence.LOW
    sentiment_detail: SentimentVerdict = SentimentVerdict()
    top_insights: tuple[RankedInsight, ...] = ()
    top_metrics: tuple[RankedMetric, ...] = ()
    conflicts: tuple[ConflictReport, ...] = ()
    action_items: tuple[ActionItem, ...] = ()
    recommended_cards: tuple[str, ...] = ()
    card_summaries: tuple[CardSummary, ...] = ()
    tags: tuple[str, ...] = ()
    accepted_cards: tuple[str, ...] = ()
    skipped_cards: tuple[SkippedCard, ...] = ()

    @property
    def insufficient_categories(self) -> list[str]:
        """Sorted names of categories flagged ``insufficient_data``."""
        return sorted(
            name for name, cs in self.category_scores.items() if not cs.is_sufficient
        )

    @property
    def is_empty(self) -> bool:
        """True when no card output survived validation."""
        return not self.accepted_cards
