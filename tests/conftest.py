"""
Shared pytest fixtures for the card synthesis test suite.

Provides:
  - ``make_card``: factory for valid ``CardOutput`` instances.
  - ``make_raw_card``: factory for camelCase dicts as producers emit them.
  - ``example_batch``: the three-card momentum / risk scenario used across
    engine tests.
  - ``registry``: a small in-memory ``CardRegistry``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Optional

import pytest

from card_synthesis.models.card import CardOutput, Insight, MetricValue, ScoreContribution
from card_synthesis.registry.models import CardSpec
from card_synthesis.registry.registry import CardRegistry, clear_registry_cache

AS_OF = datetime(2026, 3, 2, 15, 30, tzinfo=timezone.utc)


def _build_card(
    card_id:         str = "valuation-summary",
    symbol:          str = "X",
    sentiment:       str = "bullish",
    signal_strength: int = 3,
    category:        Optional[str] = "value",
    score:           Optional[float] = 70.0,
    weight:          float = 1.0,
    as_of:           datetime = AS_OF,
    **overrides: Any,
) -> CardOutput:
    contribution = (
        ScoreContribution(category=category, score=score, weight=weight)
        if category is not None and score is not None
        else None
    )
    fields: dict[str, Any] = dict(
        card_id=card_id,
        card_category=category or "",
        symbol=symbol,
        as_of=as_of,
        headline=f"{card_id} headline",
        sentiment=sentiment,
        signal_strength=signal_strength,
        score_contribution=contribution,
    )
    fields.update(overrides)
    return CardOutput(**fields)


def _build_raw_card(
    card_id:         str = "valuation-summary",
    symbol:          str = "X",
    sentiment:       str = "bullish",
    signal_strength: int = 3,
    **overrides: Any,
) -> dict[str, Any]:
    raw: dict[str, Any] = {
        "cardId": card_id,
        "cardCategory": "value",
        "symbol": symbol,
        "asOf": AS_OF.isoformat(),
        "headline": f"{card_id} headline",
        "sentiment": sentiment,
        "confidence": "medium",
        "signalStrength": signal_strength,
        "keyMetrics": [],
        "insights": [],
        "suggestedCards": [],
        "tags": [],
        "scoreContribution": {"category": "value", "score": 70, "weight": 1.0},
    }
    raw.update(overrides)
    return raw


# ── Factories ─────────────────────────────────────────────────────────────────

@pytest.fixture
def make_card() -> Callable[..., CardOutput]:
    """Factory for valid ``CardOutput`` values; keyword args override defaults."""
    return _build_card


@pytest.fixture
def make_raw_card() -> Callable[..., dict[str, Any]]:
    """Factory for camelCase card dicts as a producer would return them."""
    return _build_raw_card


# ── Scenario fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def example_batch() -> list[CardOutput]:
    """Three cards for symbol "X".

    A: momentum, score 80, weight 1.0, bullish, strength 4
    B: momentum, score 40, weight 0.5, neutral, strength 2
    C: risk,     score 20, weight 1.0, bearish, strength 3
    """
    return [
        _build_card(
            "card-a", sentiment="bullish", signal_strength=4,
            category="momentum", score=80.0, weight=1.0,
            key_metrics=(
                MetricValue(label="RSI", key="rsi", value=64.0, quality="good", priority=1),
            ),
            insights=(
                Insight(kind="strength", text="RSI trending up", priority=1,
                        related_metric_keys=frozenset({"rsi"})),
            ),
            suggested_cards=("trend-strength",),
            tags=frozenset({"technical"}),
        ),
        _build_card(
            "card-b", sentiment="neutral", signal_strength=2,
            category="momentum", score=40.0, weight=0.5,
            tags=frozenset({"technical"}),
        ),
        _build_card(
            "card-c", sentiment="bearish", signal_strength=3,
            category="risk", score=20.0, weight=1.0,
            insights=(
                Insight(kind="weakness", text="Debt/equity above 2x", priority=1),
            ),
            tags=frozenset({"fundamental"}),
        ),
    ]


@pytest.fixture
def registry() -> CardRegistry:
    """Small registry: two momentum cards, one value card, one disabled card."""
    return CardRegistry([
        CardSpec(card_id="trend-strength", display_name="Trend Strength",
                 category="momentum", weight=0.7),
        CardSpec(card_id="momentum-heatmap", display_name="Momentum Heatmap",
                 category="momentum", weight=0.8),
        CardSpec(card_id="valuation-summary", display_name="Valuation Summary",
                 category="value", weight=0.8),
        CardSpec(card_id="pattern-matcher", display_name="Pattern Matcher",
                 category="momentum", weight=0.3, enabled=False),
    ])


@pytest.fixture(autouse=True)
def _reset_registry_cache():
    """Each test starts with an empty module-level registry cache."""
    clear_registry_cache()
    yield
    clear_registry_cache()
