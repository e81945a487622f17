"""
Top-metric ranking across cards.

Every ``MetricValue`` of every accepted card is pooled and ordered by:

    1. priority        1 = primary metric
    2. quality rank    excellent, good, neutral, fair, poor
    3. -signal_strength of the origin card
    4. card_id, key    deterministic tie-break

The first ``top_n`` are returned with a 1-based ``rank``.  ``format`` is a
display hint only and plays no part in the ordering.
"""

from __future__ import annotations

from typing import Sequence

from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import RankedMetric
from card_synthesis.taxonomy.card_taxonomy import QUALITY_RANK


def rank_metrics(outputs: Sequence[CardOutput], top_n: int) -> list[RankedMetric]:
    """Return the ``top_n`` most important metrics across ``outputs``."""
    pooled = [
        (metric, output)
        for output in outputs
        for metric in output.key_metrics
    ]
    pooled.sort(
        key=lambda pair: (
            pair[0].priority,
            QUALITY_RANK[pair[0].quality],
            -pair[1].signal_strength,
            pair[1].card_id,
            pair[0].key,
        )
    )
    return [
        RankedMetric(
            label=metric.label,
            key=metric.key,
            value=metric.value,
            quality=metric.quality,
            priority=metric.priority,
            card_id=output.card_id,
            rank=rank,
        )
        for rank, (metric, output) in enumerate(pooled[:top_n], start=1)
    ]
