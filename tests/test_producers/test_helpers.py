"""
Tests for producers/helpers.py.

What we test
------------
- Score → sentiment bands (>=60 bullish, >=40 neutral, else bearish).
- Score → signal strength rounding and clamping to [1, 5].
- Completeness → confidence bands.
- Builders produce valid contract models with the documented defaults.
"""

from __future__ import annotations

import pytest

from card_synthesis.producers.helpers import (
    completeness_to_confidence,
    make_contribution,
    make_insight,
    make_metric,
    score_to_sentiment,
    score_to_signal_strength,
)
from card_synthesis.taxonomy.card_taxonomy import (
    Confidence,
    InsightKind,
    MetricFormat,
    MetricQuality,
    Sentiment,
)


@pytest.mark.parametrize(
    "score, expected",
    [
        (100, Sentiment.BULLISH),
        (60, Sentiment.BULLISH),
        (59.9, Sentiment.NEUTRAL),
        (40, Sentiment.NEUTRAL),
        (39.9, Sentiment.BEARISH),
        (0, Sentiment.BEARISH),
    ],
)
def test_score_to_sentiment(score, expected):
    assert score_to_sentiment(score) == expected


@pytest.mark.parametrize(
    "score, expected",
    [
        (0, 1),
        (10, 1),
        (30, 2),
        (50, 3),
        (70, 4),
        (100, 5),
        (150, 5),
    ],
)
def test_score_to_signal_strength(score, expected):
    assert score_to_signal_strength(score) == expected


def test_score_to_signal_strength_custom_max():
    assert score_to_signal_strength(9, max_score=9) == 5


def test_score_to_signal_strength_rejects_bad_max():
    with pytest.raises(ValueError):
        score_to_signal_strength(50, max_score=0)


@pytest.mark.parametrize(
    "ratio, expected",
    [
        (1.0, Confidence.HIGH),
        (0.9, Confidence.HIGH),
        (0.89, Confidence.MEDIUM),
        (0.7, Confidence.MEDIUM),
        (0.69, Confidence.LOW),
    ],
)
def test_completeness_to_confidence(ratio, expected):
    assert completeness_to_confidence(ratio) == expected


class TestBuilders:
    def test_make_metric_defaults(self):
        metric = make_metric("P/E", "pe", 14.2)
        assert metric.priority == 2
        assert metric.quality == MetricQuality.NEUTRAL
        assert metric.format == MetricFormat.NUMBER

    def test_make_metric_with_strings(self):
        metric = make_metric("ROE", "roe", 21.0, quality="excellent", format="percent", priority=1)
        assert metric.quality == MetricQuality.EXCELLENT
        assert metric.format == MetricFormat.PERCENT

    def test_make_insight(self):
        insight = make_insight("weakness", "High leverage", related_metric_keys=["de", "de"])
        assert insight.kind == InsightKind.WEAKNESS
        assert insight.priority == 2
        assert insight.related_metric_keys == frozenset({"de"})

    def test_make_contribution_clamps(self):
        assert make_contribution("value", 120.0).score == 100.0
        assert make_contribution("value", -5.0).score == 0.0
        assert make_contribution("value", 55.0, weight=0.4).weight == 0.4
