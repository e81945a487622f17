"""
Card contract taxonomy.

Every analysis card describes its result along a small set of closed
vocabularies:
  - ``Sentiment``     : the *direction*: which way does this card lean?
  - ``Confidence``    : the *certainty*: how sure is the card of that lean?
  - ``MetricQuality`` : the *judgment*: is a single reading favorable?
  - ``MetricFormat``  : the *display hint*: presentation-only, ignored by fusion.
  - ``InsightKind``   : the *role* of a narrative observation.

``CategoryStatus`` describes whether a fusion category had usable evidence.

Usage example::

    from card_synthesis.taxonomy.card_taxonomy import Sentiment, InsightKind

    sentiment = Sentiment.BULLISH
    kind      = InsightKind.ACTION

This module has NO imports from any other ``card_synthesis`` package.
"""

from enum import StrEnum

MIN_SIGNAL_STRENGTH = 1
MAX_SIGNAL_STRENGTH = 5


class Sentiment(StrEnum):
    """Directional lean of a card (or of the fused composite)."""

    BULLISH = "bullish"
    """Evidence favors the symbol; contributes +signal_strength."""

    BEARISH = "bearish"
    """Evidence argues against the symbol; contributes -signal_strength."""

    NEUTRAL = "neutral"
    """No directional lean; contributes 0."""


class Confidence(StrEnum):
    """Certainty attached to a sentiment."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class MetricQuality(StrEnum):
    """Normalized judgment of whether a metric reading is favorable.

    Members are declared best-to-worst; ``QUALITY_RANK`` relies on that order.
    """

    EXCELLENT = "excellent"
    GOOD = "good"
    NEUTRAL = "neutral"
    FAIR = "fair"
    POOR = "poor"


class MetricFormat(StrEnum):
    """Semantic display hint for a metric value."""

    PERCENT = "percent"
    NUMBER = "number"
    CURRENCY = "currency"


class InsightKind(StrEnum):
    """Role of a narrative observation."""

    STRENGTH = "strength"
    """Positive factor."""

    WEAKNESS = "weakness"
    """Negative factor."""

    OBSERVATION = "observation"
    """Neutral fact."""

    ACTION = "action"
    """Suggested next step; always surfaced first."""


class CategoryStatus(StrEnum):
    """Whether a fusion category produced a usable score."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


class ActionUrgency(StrEnum):
    """How soon a surfaced action item should be looked at."""

    SOON = "soon"
    """Action insight the card marked priority 1."""

    MONITOR = "monitor"
    """Any lower-priority action insight."""


# Lower rank sorts first.
QUALITY_RANK: dict[MetricQuality, int] = {
    quality: rank for rank, quality in enumerate(MetricQuality)
}

INSIGHT_KIND_RANK: dict[InsightKind, int] = {
    InsightKind.ACTION:      0,
    InsightKind.STRENGTH:    1,
    InsightKind.WEAKNESS:    1,
    InsightKind.OBSERVATION: 2,
}

SENTIMENT_SIGN: dict[Sentiment, int] = {
    Sentiment.BULLISH: 1,
    Sentiment.NEUTRAL: 0,
    Sentiment.BEARISH: -1,
}

URGENCY_RANK: dict[ActionUrgency, int] = {
    urgency: rank for rank, urgency in enumerate(ActionUrgency)
}
