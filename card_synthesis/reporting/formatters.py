"""
ASCII terminal formatters for composite results.

All formatters accept a ``CompositeResult`` (or one of its parts) and return
plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).

Freshness banner
----------------
The composite's ``as_of`` is the timestamp of its stalest card, so the
banner tells the reader how old the oldest evidence is::

  [FRESH] Oldest card evaluated 1.2h ago
  [STALE] Oldest card evaluated 26.4h ago -- some cards may be outdated
  [AGE UNKNOWN] no card was accepted

Insufficient categories
-----------------------
Categories with no usable weight are shown as ``[INSUFFICIENT]`` rather than
with a score, so missing evidence never reads as a middling score.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from card_synthesis.models.composite import (
    ActionItem,
    CategoryScore,
    CompositeResult,
    ConflictReport,
    RankedInsight,
    SkippedCard,
)
from card_synthesis.utils.time_utils import age_hours

DEFAULT_STALE_HOURS = 24.0


# ── Freshness banner ─────────────────────────────────────────────────────────


def format_freshness_banner(
    as_of:       Optional[datetime],
    stale_hours: float = DEFAULT_STALE_HOURS,
    now:         Optional[datetime] = None,
) -> str:
    """Return a one-line freshness indicator for a composite ``as_of``."""
    age = age_hours(as_of, now=now)
    if age is None:
        return "  [AGE UNKNOWN] no card was accepted"
    if age <= stale_hours:
        return f"  [FRESH] Oldest card evaluated {age:.1f}h ago"
    return f"  [STALE] Oldest card evaluated {age:.1f}h ago -- some cards may be outdated"


# ── Sections ─────────────────────────────────────────────────────────────────


def _fmt_score(score: Optional[float]) -> str:
    return f"{score:.2f}" if score is not None else "n/a"


def format_category_table(category_scores: dict[str, CategoryScore]) -> str:
    """Format per-category scores, one row per category, sorted by name::

        Category       Score  Weight  Cards  Sentiment  Status
        -------------------------------------------------------
        momentum       66.67    0.15      2  bullish    ok
        value              -    0.20      0  -          [INSUFFICIENT]
    """
    header = (
        f"    {'Category':<14}  {'Score':>6}  {'Weight':>6}  {'Cards':>5}  "
        f"{'Sentiment':<9}  Status"
    )
    lines = [header, "    " + "-" * (len(header) - 4)]
    for name in sorted(category_scores):
        cs = category_scores[name]
        if cs.is_sufficient:
            score_str, status = f"{cs.score:.2f}", "ok"
        else:
            score_str, status = "-", "[INSUFFICIENT]"
        direction = cs.sentiment.value if cs.sentiment is not None else "-"
        lines.append(
            f"    {name[:14]:<14}  {score_str:>6}  {cs.composite_weight:>6.2f}  "
            f"{cs.card_count:>5}  {direction:<9}  {status}"
        )
    return "\n".join(lines)


def format_insights(insights: Sequence[RankedInsight]) -> str:
    if not insights:
        return "    (no insights)"
    lines = []
    for insight in insights:
        lines.append(
            f"    {insight.rank:>2}. [{insight.kind.value.upper()}] {insight.text}"
            f"  ({insight.card_id})"
        )
    return "\n".join(lines)


def format_action_items(items: Sequence[ActionItem]) -> str:
    if not items:
        return "    (none)"
    return "\n".join(
        f"    [{item.urgency.value.upper()}] {item.action}  ({item.card_id})"
        for item in items
    )


def format_conflicts(conflicts: Sequence[ConflictReport]) -> str:
    if not conflicts:
        return "    (none)"
    return "\n".join(
        f"    {c.category}: bullish={', '.join(c.bullish_cards)}  "
        f"bearish={', '.join(c.bearish_cards)}  -> {c.resolution}"
        for c in conflicts
    )


def format_skipped(skipped: Sequence[SkippedCard]) -> str:
    if not skipped:
        return "    (none)"
    return "\n".join(f"    {s.card_id}: {s.reason}" for s in skipped)


# ── Full report ──────────────────────────────────────────────────────────────


def format_composite_report(
    result:      CompositeResult,
    stale_hours: float = DEFAULT_STALE_HOURS,
    now:         Optional[datetime] = None,
) -> str:
    """Format a full composite report for terminal display.

    Sections: header (symbol, as-of, verdict, score), category table,
    top insights, top metrics, action items, conflicts, recommended cards,
    skipped cards.

    Args:
        result:      Composite to render.
        stale_hours: Age above which the banner reads ``[STALE]``.
        now:         Reference time for the banner (default: current UTC).

    Returns:
        Multi-line string.
    """
    detail = result.sentiment_detail
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== Composite: {result.symbol} ===")
    lines.append(f"  As of:      {result.as_of.isoformat() if result.as_of else 'n/a'}")
    lines.append(format_freshness_banner(result.as_of, stale_hours, now))
    lines.append(
        f"  Verdict:    {result.overall_sentiment.value} "
        f"({result.overall_confidence.value} confidence)"
    )
    lines.append(
        f"  Signal:     sum={detail.signed_sum:+d}  deadband={detail.deadband:.2f}  "
        f"agreement={detail.agreement:.0%}  cards={detail.card_count}"
    )
    lines.append(f"  Score:      {_fmt_score(result.overall_score)}")
    lines.append(
        f"  Cards:      {len(result.accepted_cards)} fused, "
        f"{len(result.skipped_cards)} skipped"
    )

    if result.is_empty:
        lines.append("")
        lines.append("  (no usable card outputs -- every category is insufficient)")

    lines.append("")
    lines.append("  [CATEGORIES]")
    lines.append(format_category_table(result.category_scores))

    lines.append("")
    lines.append("  [TOP INSIGHTS]")
    lines.append(format_insights(result.top_insights))

    if result.top_metrics:
        lines.append("")
        lines.append("  [TOP METRICS]")
        for metric in result.top_metrics:
            value = "n/a" if metric.value is None else str(metric.value)
            lines.append(
                f"    {metric.rank:>2}. {metric.label[:28]:<28}  {value:>12}  "
                f"{metric.quality.value:<9}  ({metric.card_id})"
            )

    lines.append("")
    lines.append("  [ACTION ITEMS]")
    lines.append(format_action_items(result.action_items))

    lines.append("")
    lines.append("  [CONFLICTS]")
    lines.append(format_conflicts(result.conflicts))

    lines.append("")
    lines.append("  [RECOMMENDED CARDS]")
    lines.append(
        "    " + ", ".join(result.recommended_cards) if result.recommended_cards
        else "    (none)"
    )

    lines.append("")
    lines.append("  [SKIPPED]")
    lines.append(format_skipped(result.skipped_cards))

    return "\n".join(lines)
