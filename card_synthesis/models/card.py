"""
Card output contract: the envelope every analysis card returns.

``MetricValue`` is one measured quantity, ``Insight`` one narrative
observation, ``ScoreContribution`` the card's vote for its category score,
and ``CardOutput`` bundles them for one symbol at one evaluation time.

All models are frozen: a ``CardOutput`` is produced fresh on every evaluation,
consumed once by the synthesis engine, and never mutated afterwards.

Field naming
------------
Python attributes are snake_case.  Producers written against the dashboard
contract emit camelCase (``cardId``, ``signalStrength``, ``keyMetrics``,
``relatedMetricKeys``, ``scoreContribution``, ``asOf`` ...); both spellings are
accepted on input, and ``model_dump(by_alias=True)`` emits camelCase.

Contract constraints enforced here
----------------------------------
  - ``card_id`` is non-empty (after stripping whitespace).
  - ``signal_strength`` is an integer in [1, 5]; booleans and numeric
    strings are rejected rather than coerced.
  - ``score_contribution.score`` is in [0, 100], ``weight`` in [0, 1].
  - Metric ``key`` values are unique within one card.
  - ``as_of`` is timezone-aware; naive datetimes are read as UTC.

``Insight.related_metric_keys`` referencing keys missing from ``key_metrics``
is NOT an error: the engine simply leaves such links unresolved.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from card_synthesis.taxonomy.card_taxonomy import (
    MAX_SIGNAL_STRENGTH,
    MIN_SIGNAL_STRENGTH,
    Confidence,
    InsightKind,
    MetricFormat,
    MetricQuality,
    Sentiment,
)

MetricReading = Union[float, int, str, None]

_CONTRACT_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class MetricValue(BaseModel):
    """One measured quantity attached to a card.

    Attributes:
        label: Human-readable name, e.g. ``"P/E Ratio"``.
        key: Stable identifier, unique within the owning card, e.g. ``"pe_ratio"``.
        value: Numeric or categorical reading; ``None`` when not available.
        quality: Normalized favorability judgment.
        format: Display hint; irrelevant to fusion.
        priority: 1 = most important.
    """

    model_config = _CONTRACT_CONFIG

    label: str
    key: str
    value: MetricReading = None
    quality: MetricQuality = MetricQuality.NEUTRAL
    format: MetricFormat = MetricFormat.NUMBER
    priority: int = 2

    @field_validator("key")
    @classmethod
    def validate_key_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("metric key must not be empty.")
        return v.strip()

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"metric priority must be >= 1, got {v}.")
        return v


class Insight(BaseModel):
    """One narrative observation emitted by a card.

    Attributes:
        kind: Role of the observation (strength / weakness / observation / action).
        text: Rendered explanation; opaque to the engine.
        priority: Lower = more important.
        related_metric_keys: Provenance links to ``MetricValue.key`` values of
            the same card.  Soft references: misses are tolerated.
    """

    model_config = _CONTRACT_CONFIG

    kind: InsightKind
    text: str
    priority: int = 2
    related_metric_keys: frozenset[str] = frozenset()

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"insight priority must be >= 1, got {v}.")
        return v

    @field_serializer("related_metric_keys")
    def serialize_related_keys(self, v: frozenset[str]) -> list[str]:
        return sorted(v)


class ScoreContribution(BaseModel):
    """A card's vote for its fusion category's aggregate score.

    Attributes:
        category: Fusion grouping key, e.g. ``"momentum"``.
        score: 0–100, higher = more favorable.
        weight: 0–1, the author's conviction in this vote.
    """

    model_config = _CONTRACT_CONFIG

    category: str
    score: float
    weight: float

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("scoreContribution.category must not be empty.")
        return v.strip()

    @field_validator("score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"scoreContribution.score must be in [0, 100], got {v}.")
        return v

    @field_validator("weight")
    @classmethod
    def validate_weight_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"scoreContribution.weight must be in [0, 1], got {v}.")
        return v


class CardOutput(BaseModel):
    """The complete result one analysis card produces for one symbol.

    Attributes:
        card_id: Stable card identifier, e.g. ``"valuation-summary"``.
        card_category: Card family used for display grouping, e.g. ``"value"``.
        symbol: Subject symbol; every output fused together shares it.
        as_of: Evaluation timestamp (UTC-aware).
        headline: One-line summary; opaque to the engine.
        sentiment: Directional lean of the card.
        confidence: The card's own certainty in ``sentiment``.
        signal_strength: Conviction magnitude, 1 (weak) to 5 (strong).
        key_metrics: Metrics in author display order.
        insights: Narrative observations in author order.
        suggested_cards: Follow-up card ids; dangling ids are tolerated.
        tags: Free-form labels used for optional filtering.
        score_contribution: Category vote, or ``None`` when the card does not
            score (the engine may then fall back to the card registry).
    """

    model_config = _CONTRACT_CONFIG

    card_id: str
    card_category: str = ""
    symbol: str
    as_of: datetime
    headline: str = ""
    sentiment: Sentiment
    confidence: Confidence = Confidence.MEDIUM
    signal_strength: int
    key_metrics: tuple[MetricValue, ...] = ()
    insights: tuple[Insight, ...] = ()
    suggested_cards: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    score_contribution: Optional[ScoreContribution] = Field(default=None)

    @field_validator("card_id")
    @classmethod
    def validate_card_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("cardId must not be empty.")
        return v.strip()

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("symbol must not be empty.")
        return v.strip()

    @field_validator("signal_strength", mode="before")
    @classmethod
    def reject_coerced_strength(cls, v: object) -> object:
        if isinstance(v, (bool, str)):
            raise ValueError(
                f"signalStrength must be an integer, got {type(v).__name__} {v!r}."
            )
        return v

    @field_validator("signal_strength")
    @classmethod
    def validate_signal_strength(cls, v: int) -> int:
        if not MIN_SIGNAL_STRENGTH <= v <= MAX_SIGNAL_STRENGTH:
            raise ValueError(
                f"signalStrength must be in [{MIN_SIGNAL_STRENGTH}, "
                f"{MAX_SIGNAL_STRENGTH}], got {v}."
            )
        return v

    @field_validator("as_of")
    @classmethod
    def validate_as_of_tz(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def validate_unique_metric_keys(self) -> "CardOutput":
        seen: set[str] = set()
        for metric in self.key_metrics:
            if metric.key in seen:
                raise ValueError(
                    f"Duplicate metric key '{metric.key}' in card '{self.card_id}'."
                )
            seen.add(metric.key)
        return self

    @field_serializer("tags")
    def serialize_tags(self, v: frozenset[str]) -> list[str]:
        return sorted(v)

    def metric_by_key(self, key: str) -> Optional[MetricValue]:
        """Return this card's metric with ``key``, or ``None`` if absent."""
        for metric in self.key_metrics:
            if metric.key == key:
                return metric
        return None
