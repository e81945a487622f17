"""
Synthesis engine: one batch of card outputs → one ``CompositeResult``.

Usage flow
----------
1. partition_batch(entries, symbol)           -> accepted / skipped
2. filter_by_tags(accepted, tags)             -> cards to fuse (optional)
3. compute_category_scores(...)               -> per-category scores
   compute_overall_score(...)                 -> composite score
4. reconcile_sentiment(...)                   -> overall sentiment / confidence
5. rank_insights(...), rank_metrics(...),
   extract_action_items(...),
   detect_conflicts(...), recommend_cards(...) -> explanatory content
6. CompositeResult(...)                       -> frozen, renderable result

The engine is stateless and single-pass: no intermediate state survives
between runs, so one engine instance may fuse many symbols concurrently
(see ``synthesize_many``).

Totality
--------
``SynthesisEngine.synthesize()`` never raises for a malformed entry; the entry
lands in ``skipped_cards`` instead.  An empty (or fully rejected) batch yields
a composite with every category flagged insufficient, ``overall_score=None``,
neutral sentiment and low confidence.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Iterable, Mapping, Optional

from card_synthesis.config import DEFAULT_COMPOSITE_WEIGHTS, AppConfig, SynthesisConfig
from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import CardSummary, CompositeResult, SkippedCard
from card_synthesis.registry.registry import CardRegistry
from card_synthesis.synthesis.categories import (
    compute_category_scores,
    compute_overall_score,
    effective_contribution,
)
from card_synthesis.synthesis.conflicts import detect_conflicts
from card_synthesis.synthesis.insights import extract_action_items, rank_insights
from card_synthesis.synthesis.metrics import rank_metrics
from card_synthesis.synthesis.recommend import aggregate_tags, filter_by_tags, recommend_cards
from card_synthesis.synthesis.sentiment import reconcile_sentiment
from card_synthesis.synthesis.validation import partition_batch
from card_synthesis.utils.logging import symbol_logger
from card_synthesis.utils.time_utils import earliest

logger = logging.getLogger(__name__)


class SynthesisEngine:
    """Fuses card outputs for one symbol into a composite verdict.

    Attributes:
        config:            Fusion policy constants.
        composite_weights: Category -> weight in the overall score.
        registry:          Static card registry (read-only).
    """

    def __init__(
        self,
        config:            Optional[SynthesisConfig] = None,
        composite_weights: Optional[Mapping[str, float]] = None,
        registry:          Optional[CardRegistry] = None,
    ) -> None:
        self.config = config or SynthesisConfig()
        self.composite_weights: dict[str, float] = dict(
            DEFAULT_COMPOSITE_WEIGHTS if composite_weights is None else composite_weights
        )
        self.registry = registry

    @classmethod
    def from_app_config(
        cls,
        app_config: AppConfig,
        registry:   Optional[CardRegistry] = None,
    ) -> "SynthesisEngine":
        """Build an engine from ``AppConfig``, loading the card registry file
        named in ``app_config.registry.cards_file`` unless one is supplied."""
        if registry is None:
            registry = CardRegistry.from_file(app_config.registry.cards_file)
        return cls(
            config=app_config.synthesis,
            composite_weights=app_config.composite_weights,
            registry=registry,
        )

    def synthesize(
        self,
        symbol:      str,
        outputs:     Iterable[Any],
        tags:        Optional[set[str]] = None,
        prior_skips: Iterable[SkippedCard] = (),
    ) -> CompositeResult:
        """Fuse ``outputs`` for ``symbol`` into a ``CompositeResult``.

        Args:
            symbol:      Target symbol; entries for other symbols are skipped.
            outputs:     Raw producer outputs (``CardOutput`` or mappings).
            tags:        Optional tag filter; only cards carrying one of these
                         tags are fused.  Filtered cards are not "skipped".
            prior_skips: Failures recorded upstream (e.g. producer exceptions)
                         to merge into the diagnostic trail.

        Returns:
            Deterministic ``CompositeResult`` for this batch.
        """
        log = symbol_logger(logger, symbol)
        partition = partition_batch(outputs, symbol)
        skipped = sorted(
            [*partition.skipped, *prior_skips], key=lambda s: (s.card_id, s.reason)
        )
        for skip in skipped:
            log.warning(
                "Skipped card %s for %s: %s", skip.card_id, symbol, skip.reason,
                extra={"card_id": skip.card_id, "reason": skip.reason},
            )

        fused = filter_by_tags(partition.accepted, tags)
        for output in fused:
            if self.registry is not None and not self.registry.is_known(output.card_id):
                log.debug(
                    "Card %s is not in the registry; fusing anyway.", output.card_id,
                    extra={"card_id": output.card_id},
                )

        cfg = self.config
        category_scores = compute_category_scores(
            fused, self.composite_weights, cfg, self.registry
        )
        verdict = reconcile_sentiment(fused, cfg)

        result = CompositeResult(
            symbol=symbol,
            as_of=earliest(o.as_of for o in fused),
            category_scores=category_scores,
            overall_score=compute_overall_score(category_scores, cfg),
            overall_sentiment=verdict.sentiment,
            overall_confidence=verdict.confidence,
            sentiment_detail=verdict,
            top_insights=tuple(rank_insights(fused, cfg.top_n_insights, self.registry)),
            top_metrics=tuple(rank_metrics(fused, cfg.top_n_metrics)),
            conflicts=tuple(detect_conflicts(fused, self.registry)),
            action_items=tuple(
                extract_action_items(fused, cfg.max_action_items, self.registry)
            ),
            recommended_cards=tuple(
                recommend_cards(fused, cfg.max_recommended_cards, self.registry)
            ),
            card_summaries=tuple(self._summarize(o) for o in fused),
            tags=tuple(aggregate_tags(fused, cfg.max_tags)),
            accepted_cards=tuple(o.card_id for o in fused),
            skipped_cards=tuple(skipped),
        )

        log.info(
            "Synthesized %s: %d fused, %d skipped, %s/%s, score=%s",
            symbol, len(result.accepted_cards), len(result.skipped_cards),
            result.overall_sentiment, result.overall_confidence, result.overall_score,
        )
        return result

    def _summarize(self, output: CardOutput) -> CardSummary:
        contribution = effective_contribution(output, self.registry)
        return CardSummary(
            card_id=output.card_id,
            category=contribution.category if contribution else None,
            sentiment=output.sentiment,
            confidence=output.confidence,
            signal_strength=output.signal_strength,
            score=contribution.score if contribution else None,
            headline=output.headline,
            top_insight=output.insights[0].text if output.insights else "",
        )


def synthesize(
    symbol:  str,
    outputs: Iterable[Any],
    engine:  Optional[SynthesisEngine] = None,
    tags:    Optional[set[str]] = None,
) -> CompositeResult:
    """Convenience wrapper: fuse with ``engine`` (default policy if omitted)."""
    return (engine or SynthesisEngine()).synthesize(symbol, outputs, tags=tags)


def synthesize_many(
    batches:     Mapping[str, Iterable[Any]],
    engine:      Optional[SynthesisEngine] = None,
    max_workers: int = 4,
) -> dict[str, CompositeResult]:
    """Fuse several symbols concurrently.

    Symbols never interact, so the result equals fusing each batch in turn.

    Args:
        batches:     Symbol -> raw producer outputs for that symbol.
        engine:      Engine shared by all workers (it holds no run state).
        max_workers: Thread pool size.

    Returns:
        Symbol -> ``CompositeResult``, keys in sorted order.
    """
    engine = engine or SynthesisEngine()
    symbols = sorted(batches)
    if not symbols:
        return {}

    # Materialize first: generators must not be consumed inside worker threads.
    materialized = {s: list(batches[s]) for s in symbols}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(symbols)))) as pool:
        futures = {s: pool.submit(engine.synthesize, s, materialized[s]) for s in symbols}
        return {s: futures[s].result() for s in symbols}
