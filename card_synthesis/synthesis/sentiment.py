"""
Sentiment reconciliation: many per-card sentiments → one verdict.

Signed magnitude
----------------
    bullish → +signal_strength
    bearish → -signal_strength
    neutral →  0

    signed_sum = Σ signed magnitude over ALL accepted cards

Every card votes; a card's ``signal_strength`` already encodes its own
conviction, so there is no one-vote-per-category collapsing.

Deadband
--------
    deadband = card_count × SynthesisConfig.deadband_per_card

    |signed_sum| <  deadband → neutral
    signed_sum  >= deadband → bullish
    signed_sum <= -deadband → bearish

With the default ``deadband_per_card = 0.25`` three cards give a deadband
of 0.75, so a +1 split (bullish 4, neutral, bearish 3) resolves bullish;
with 0.5 the same batch resolves neutral.

Confidence (from agreement, not from magnitude)
-----------------------------------------------
    agreement = cards whose sentiment == overall sentiment / card_count

    agreement >= high_agreement   → high
    agreement >= medium_agreement → medium
    otherwise                     → low

A narrow majority therefore never masquerades as high confidence.  No cards
at all → neutral / low.
"""

from __future__ import annotations

from typing import Sequence

from card_synthesis.config import SynthesisConfig
from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import SentimentVerdict
from card_synthesis.taxonomy.card_taxonomy import SENTIMENT_SIGN, Confidence, Sentiment


def signed_magnitude(output: CardOutput) -> int:
    """Return the card's signed vote: ±signal_strength, or 0 when neutral."""
    return SENTIMENT_SIGN[output.sentiment] * output.signal_strength


def classify_direction(signed_sum: float, deadband: float) -> Sentiment:
    """Map a signed sum to a direction, treating |sum| < deadband as neutral."""
    if signed_sum == 0 or abs(signed_sum) < deadband:
        return Sentiment.NEUTRAL
    return Sentiment.BULLISH if signed_sum > 0 else Sentiment.BEARISH


def classify_confidence(agreement: float, config: SynthesisConfig) -> Confidence:
    """Map an agreement ratio to a confidence level."""
    if agreement >= config.high_agreement:
        return Confidence.HIGH
    if agreement >= config.medium_agreement:
        return Confidence.MEDIUM
    return Confidence.LOW


def reconcile_sentiment(
    outputs: Sequence[CardOutput],
    config:  SynthesisConfig,
) -> SentimentVerdict:
    """Fold per-card sentiments into one sentiment/confidence verdict.

    Args:
        outputs: Accepted card outputs.
        config:  Fusion policy (deadband, agreement thresholds).

    Returns:
        ``SentimentVerdict`` with the sum, deadband and agreement exposed.
    """
    card_count = len(outputs)
    if card_count == 0:
        return SentimentVerdict()

    signed_sum = sum(signed_magnitude(o) for o in outputs)
    deadband = card_count * config.deadband_per_card
    sentiment = classify_direction(signed_sum, deadband)

    agreeing = sum(1 for o in outputs if o.sentiment == sentiment)
    agreement = agreeing / card_count

    return SentimentVerdict(
        sentiment=sentiment,
        confidence=classify_confidence(agreement, config),
        signed_sum=signed_sum,
        deadband=round(deadband, 6),
        agreement=round(agreement, 4),
        card_count=card_count,
    )
