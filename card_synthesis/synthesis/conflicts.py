"""
Conflict detection: bullish and bearish cards inside the same category.

A conflict does not change the verdict; sentiment reconciliation already
weighs every vote.  It is reported so the reader can see *where* the
evidence disagrees.

Resolution labels
-----------------
    majority_bullish : more bullish than bearish cards
    majority_bearish : more bearish than bullish cards
    split            : equal counts
"""

from __future__ import annotations

from collections import defaultdict
from typing import Optional, Sequence

from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import ConflictReport
from card_synthesis.registry.registry import CardRegistry
from card_synthesis.synthesis.insights import fusion_category
from card_synthesis.taxonomy.card_taxonomy import Sentiment


def detect_conflicts(
    outputs:  Sequence[CardOutput],
    registry: Optional[CardRegistry] = None,
) -> list[ConflictReport]:
    """Return one ``ConflictReport`` per category holding opposing sentiments.

    Reports are sorted by category; card ids inside a report are sorted.
    """
    bullish: dict[str, list[str]] = defaultdict(list)
    bearish: dict[str, list[str]] = defaultdict(list)

    for output in outputs:
        category = fusion_category(output, registry)
        if output.sentiment == Sentiment.BULLISH:
            bullish[category].append(output.card_id)
        elif output.sentiment == Sentiment.BEARISH:
            bearish[category].append(output.card_id)

    reports: list[ConflictReport] = []
    for category in sorted(set(bullish) & set(bearish)):
        bulls, bears = sorted(bullish[category]), sorted(bearish[category])
        if len(bulls) > len(bears):
            resolution = "majority_bullish"
        elif len(bears) > len(bulls):
            resolution = "majority_bearish"
        else:
            resolution = "split"
        reports.append(
            ConflictReport(
                category=category,
                bullish_cards=tuple(bulls),
                bearish_cards=tuple(bears),
                resolution=resolution,
            )
        )
    return reports
