"""
Card contract validation: the fusion boundary guard.

A batch handed to the engine may contain anything a producer returned: a
well-formed ``CardOutput``, a raw dict in the dashboard's camelCase shape, or
garbage.  ``partition_batch()`` sorts every entry into *accepted* or
*skipped* so that one malformed producer can only shrink the evidence pool,
never abort the fusion of the rest.

Rejection rules (first match wins)
----------------------------------
  1. Entry is neither a ``CardOutput`` nor a mapping     → "not a card output"
  2. Entry fails ``CardOutput`` validation               → "invalid card output: ..."
     (empty cardId, signalStrength outside [1, 5] or not an integer, score outside [0, 100],
      weight outside [0, 1], duplicate metric keys, missing fields, ...)
  3. Entry's symbol differs from the batch symbol        → "symbol mismatch: ..."
  4. Another accepted entry already has the same cardId  → "duplicate card_id"

Symbols are compared case-insensitively after stripping whitespace.

Duplicates are resolved in a canonical order independent of input order:
by card_id, then the most recent ``as_of`` first, then the serialized form.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import SkippedCard

UNKNOWN_CARD_ID = "<unknown>"


@dataclass
class BatchPartition:
    """Validated batch split into accepted outputs and skipped producers.

    Attributes:
        accepted: Valid, de-duplicated outputs sorted by card_id.
        skipped:  Rejected entries with reasons, sorted by (card_id, reason).
    """

    accepted: list[CardOutput] = field(default_factory=list)
    skipped:  list[SkippedCard] = field(default_factory=list)


def normalize_symbol(symbol: str) -> str:
    return symbol.strip().casefold()


def validate_card_output(
    entry: Any,
    symbol: str,
) -> tuple[Optional[CardOutput], Optional[SkippedCard]]:
    """Validate one batch entry against the card contract.

    Args:
        entry:  A ``CardOutput`` or a mapping claiming to be one.
        symbol: The batch's target symbol.

    Returns:
        ``(card_output, None)`` when accepted, ``(None, skipped_card)`` when not.
    """
    card_id = _recover_card_id(entry)

    if not isinstance(entry, (CardOutput, Mapping)):
        return None, SkippedCard(
            card_id=card_id,
            reason=f"not a card output (got {type(entry).__name__})",
        )

    try:
        output = CardOutput.model_validate(entry)
    except ValidationError as exc:
        return None, SkippedCard(
            card_id=card_id,
            reason=f"invalid card output: {_summarize_errors(exc)}",
        )

    if normalize_symbol(output.symbol) != normalize_symbol(symbol):
        return None, SkippedCard(
            card_id=output.card_id,
            reason=f"symbol mismatch: expected '{symbol}', got '{output.symbol}'",
        )

    return output, None


def partition_batch(entries: Iterable[Any], symbol: str) -> BatchPartition:
    """Validate every entry and split the batch into accepted / skipped.

    Args:
        entries: Raw producer outputs for one symbol.
        symbol:  The batch's target symbol.

    Returns:
        ``BatchPartition`` with deterministic ordering regardless of the
        order of ``entries``.
    """
    valid: list[CardOutput] = []
    skipped: list[SkippedCard] = []

    for entry in entries:
        output, rejection = validate_card_output(entry, symbol)
        if rejection is not None:
            skipped.append(rejection)
        else:
            valid.append(output)

    valid.sort(key=_canonical_key)

    accepted: list[CardOutput] = []
    seen: set[str] = set()
    for output in valid:
        if output.card_id in seen:
            skipped.append(SkippedCard(card_id=output.card_id, reason="duplicate card_id"))
            continue
        seen.add(output.card_id)
        accepted.append(output)

    skipped.sort(key=lambda s: (s.card_id, s.reason))
    return BatchPartition(accepted=accepted, skipped=skipped)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _canonical_key(output: CardOutput) -> tuple[str, float, str]:
    return (output.card_id, -output.as_of.timestamp(), output.model_dump_json())


def _recover_card_id(entry: Any) -> str:
    """Best-effort card id for diagnostics, even when the entry is malformed."""
    if isinstance(entry, CardOutput):
        return entry.card_id
    if isinstance(entry, Mapping):
        raw = entry.get("cardId", entry.get("card_id"))
        if isinstance(raw, str) and raw.strip():
            return raw.strip()
    return UNKNOWN_CARD_ID


def _summarize_errors(exc: ValidationError, limit: int = 3) -> str:
    """Condense a pydantic ValidationError into one line."""
    errors = exc.errors()
    parts = []
    for err in errors[:limit]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    if len(errors) > limit:
        parts.append(f"... and {len(errors) - limit} more")
    return "; ".join(parts)
