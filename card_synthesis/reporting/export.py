"""
Export helpers for composite results.

All writers create parent directories and return the written ``Path``.

``composite_to_dict()`` produces the camelCase JSON shape the dashboard reads
(``overallScore``, ``categoryScores``, ``topInsights`` ...).
``flatten_category_scores_for_export()`` turns one or more composites into
flat rows, one per (symbol, category), for CSV / spreadsheet use.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable

from card_synthesis.models.composite import CompositeResult
from card_synthesis.utils.time_utils import utcnow

CATEGORY_EXPORT_FIELDS = [
    "symbol",
    "as_of",
    "category",
    "score",
    "status",
    "sentiment",
    "total_weight",
    "composite_weight",
    "card_count",
    "card_ids",
    "overall_score",
    "overall_sentiment",
    "overall_confidence",
]


def composite_to_dict(result: CompositeResult) -> dict[str, Any]:
    """JSON-ready camelCase dict for ``result``."""
    return result.model_dump(mode="json", by_alias=True)


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_to_csv(
    records:    list[dict],
    path:       Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path.
        fieldnames: Column order.  If None, uses the keys of the first record.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def composite_filename(result: CompositeResult) -> str:
    """``composite_{symbol}_{YYYY-MM-DD}.json``, dated by ``as_of`` (or today)."""
    stamp = (result.as_of or utcnow()).strftime("%Y-%m-%d")
    safe_symbol = "".join(ch if ch.isalnum() or ch in "-_." else "_" for ch in result.symbol)
    return f"composite_{safe_symbol}_{stamp}.json"


def write_composite_json(result: CompositeResult, output_dir: Path) -> Path:
    """Write ``result`` to ``output_dir/composite_{symbol}_{date}.json``."""
    return export_to_json(composite_to_dict(result), Path(output_dir) / composite_filename(result))


def flatten_category_scores_for_export(results: Iterable[CompositeResult]) -> list[dict]:
    """One flat row per (symbol, category).

    Insufficient categories keep empty ``score`` and ``sentiment`` cells rather
    than a midpoint.
    """
    rows: list[dict] = []
    for result in results:
        as_of = result.as_of.isoformat() if result.as_of else ""
        for name in sorted(result.category_scores):
            cs = result.category_scores[name]
            rows.append(
                {
                    "symbol":             result.symbol,
                    "as_of":              as_of,
                    "category":           name,
                    "score":              "" if cs.score is None else cs.score,
                    "status":             cs.status.value,
                    "sentiment":          "" if cs.sentiment is None else cs.sentiment.value,
                    "total_weight":       cs.total_weight,
                    "composite_weight":   cs.composite_weight,
                    "card_count":         cs.card_count,
                    "card_ids":           ";".join(cs.card_ids),
                    "overall_score":      "" if result.overall_score is None else result.overall_score,
                    "overall_sentiment":  result.overall_sentiment.value,
                    "overall_confidence": result.overall_confidence.value,
                }
            )
    return rows
