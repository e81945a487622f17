"""
Tests for synthesis/categories.py: category normalization and overall score.

What we test
------------
- Weight-normalized mean per category (worked momentum / risk example).
- Increasing one card's weight moves the category score toward that card.
- Zero total weight flags the category insufficient with score None (never 50).
- Every category in the composite weight table is listed.
- Registry fallback contribution for cards that emit no scoreContribution.
- Overall score ignores insufficient categories; None with no evidence.
- Category sentiment: bullish above 60, bearish below 40, neutral on and
  between the bands, None when insufficient.
"""

from __future__ import annotations

import pytest

from card_synthesis.config import DEFAULT_COMPOSITE_WEIGHTS, SynthesisConfig
from card_synthesis.synthesis.categories import (
    classify_category_sentiment,
    compute_category_scores,
    compute_overall_score,
    effective_contribution,
)
from card_synthesis.taxonomy.card_taxonomy import CategoryStatus, Sentiment

CFG = SynthesisConfig()


class TestCategoryScores:
    def test_worked_example(self, example_batch):
        scores = compute_category_scores(example_batch, DEFAULT_COMPOSITE_WEIGHTS, CFG)
        assert scores["momentum"].score == 66.67
        assert scores["momentum"].card_ids == ("card-a", "card-b")
        assert scores["momentum"].total_weight == 1.5
        assert scores["risk"].score == 20.0
        assert scores["risk"].card_count == 1

    def test_every_table_category_listed(self, example_batch):
        scores = compute_category_scores(example_batch, DEFAULT_COMPOSITE_WEIGHTS, CFG)
        assert set(scores) == set(DEFAULT_COMPOSITE_WEIGHTS)
        assert list(scores) == sorted(scores)
        assert scores["value"].status == CategoryStatus.INSUFFICIENT_DATA
        assert scores["value"].score is None
        assert scores["value"].card_count == 0

    def test_unlisted_category_gets_default_weight(self, make_card):
        scores = compute_category_scores(
            [make_card(category="sector", score=55.0)], {"value": 1.0}, CFG
        )
        assert scores["sector"].score == 55.0
        assert scores["sector"].composite_weight == CFG.unlisted_category_weight

    def test_monotonic_weight_influence(self, make_card):
        results = []
        for weight in (0.0, 0.1, 0.3, 0.6, 1.0):
            batch = [
                make_card("a", category="momentum", score=80.0, weight=weight),
                make_card("b", category="momentum", score=40.0, weight=0.5),
            ]
            results.append(
                compute_category_scores(batch, {"momentum": 1.0}, CFG)["momentum"].score
            )
        assert results[0] == 40.0
        assert all(later > earlier for earlier, later in zip(results, results[1:]))
        assert all(score <= 80.0 for score in results)

    def test_all_zero_weight_is_insufficient_not_fifty(self, make_card):
        batch = [
            make_card("a", category="risk", score=90.0, weight=0.0),
            make_card("b", category="risk", score=10.0, weight=0.0),
        ]
        risk = compute_category_scores(batch, {"risk": 1.0}, CFG)["risk"]
        assert risk.status == CategoryStatus.INSUFFICIENT_DATA
        assert risk.score is None
        assert risk.card_count == 2
        assert risk.card_ids == ("a", "b")

    def test_cards_without_contribution_do_not_score(self, make_card):
        scores = compute_category_scores(
            [make_card("a", category=None)], {"value": 1.0}, CFG
        )
        assert scores["value"].card_count == 0
        assert not scores["value"].is_sufficient

    def test_permutation_invariant(self, make_card):
        batch = [
            make_card("a", category="value", score=33.3, weight=0.3),
            make_card("b", category="value", score=71.1, weight=0.7),
            make_card("c", category="value", score=12.9, weight=0.9),
        ]
        forward = compute_category_scores(batch, {"value": 1.0}, CFG)
        backward = compute_category_scores(list(reversed(batch)), {"value": 1.0}, CFG)
        assert forward == backward


class TestEffectiveContribution:
    def test_own_contribution_wins(self, make_card, registry):
        card = make_card("trend-strength", category="risk", score=35.0, weight=0.4)
        contribution = effective_contribution(card, registry)
        assert contribution.category == "risk"
        assert contribution.score == 35.0

    def test_registry_fallback(self, make_card, registry):
        card = make_card("trend-strength", category=None, sentiment="bullish",
                         signal_strength=4)
        contribution = effective_contribution(card, registry)
        assert contribution.category == "momentum"
        assert contribution.score == 90.0
        assert contribution.weight == 0.7

    def test_registry_fallback_bearish(self, make_card, registry):
        card = make_card("trend-strength", category=None, sentiment="bearish",
                         signal_strength=5)
        assert effective_contribution(card, registry).score == 0.0

    def test_unknown_card_without_contribution(self, make_card, registry):
        assert effective_contribution(make_card("mystery", category=None), registry) is None

    def test_no_registry(self, make_card):
        assert effective_contribution(make_card(category=None)) is None


class TestOverallScore:
    def test_weighted_over_sufficient_only(self, example_batch):
        scores = compute_category_scores(example_batch, DEFAULT_COMPOSITE_WEIGHTS, CFG)
        overall = compute_overall_score(scores, CFG)
        # momentum and risk share a 0.15 composite weight
        assert overall == pytest.approx((66.67 + 20.0) / 2, abs=0.01)

    def test_none_without_evidence(self):
        scores = compute_category_scores([], DEFAULT_COMPOSITE_WEIGHTS, CFG)
        assert compute_overall_score(scores, CFG) is None

    def test_zero_composite_weight_category_ignored(self, make_card):
        batch = [
            make_card("a", category="value", score=80.0),
            make_card("b", category="macro", score=10.0),
        ]
        scores = compute_category_scores(batch, {"value": 1.0, "macro": 0.0}, CFG)
        assert compute_overall_score(scores, CFG) == 80.0


class TestCategorySentiment:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (100.0, Sentiment.BULLISH),
            (60.01, Sentiment.BULLISH),
            (60.0, Sentiment.NEUTRAL),
            (50.0, Sentiment.NEUTRAL),
            (40.0, Sentiment.NEUTRAL),
            (39.99, Sentiment.BEARISH),
            (0.0, Sentiment.BEARISH),
        ],
    )
    def test_bands(self, score, expected):
        assert classify_category_sentiment(score, CFG) == expected

    def test_none_stays_none(self):
        assert classify_category_sentiment(None, CFG) is None

    def test_custom_bands(self):
        cfg = SynthesisConfig(category_bullish_above=70.0, category_bearish_below=30.0)
        assert classify_category_sentiment(65.0, cfg) == Sentiment.NEUTRAL

    def test_set_on_scores(self, example_batch):
        scores = compute_category_scores(example_batch, DEFAULT_COMPOSITE_WEIGHTS, CFG)
        assert scores["momentum"].sentiment == Sentiment.BULLISH
        assert scores["risk"].sentiment == Sentiment.BEARISH

    def test_insufficient_never_reads_neutral(self, make_card):
        batch = [make_card("a", category="risk", score=50.0, weight=0.0)]
        risk = compute_category_scores(batch, {"risk": 1.0}, CFG)["risk"]
        assert risk.sentiment is None
        assert compute_category_scores([], {"value": 1.0}, CFG)["value"].sentiment is None
