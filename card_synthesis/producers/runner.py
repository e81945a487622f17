"""
Producer runner: gather card outputs concurrently, then fuse.

Card computations are independent pure functions of the symbol data, so
they run side by side on a thread pool.  The timeout / cancellation boundary
lives here, not in the engine: by the time ``SynthesisEngine.synthesize()``
is called the batch is fully materialized.

Failure policy
--------------
A producer that raises, times out, or returns nothing is recorded as a
``SkippedCard`` and the rest of the batch proceeds:

    producer_error: <ExceptionType>: <message>
    producer_timeout: exceeded <N>s
    producer_error: returned no output

Outputs keep producer-id order so that gathering is deterministic.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from card_synthesis.config import ProducerConfig
from card_synthesis.models.card import CardOutput
from card_synthesis.models.composite import CompositeResult, SkippedCard
from card_synthesis.synthesis.engine import SynthesisEngine

logger = logging.getLogger(__name__)

ProducerFn = Callable[[Mapping[str, Any]], Union[CardOutput, Mapping[str, Any], None]]


@dataclass
class GatherResult:
    """Outputs collected from producers plus per-producer failures.

    Attributes:
        outputs:  Raw producer results in producer-id order (not yet validated).
        failures: Producers that raised, timed out, or returned nothing.
    """

    outputs:  list[Any] = field(default_factory=list)
    failures: list[SkippedCard] = field(default_factory=list)


def gather_card_outputs(
    symbol_data:     Mapping[str, Any],
    producers:       Mapping[str, ProducerFn],
    max_workers:     int = 8,
    timeout_seconds: float = 10.0,
) -> GatherResult:
    """Run every producer against ``symbol_data`` on a bounded thread pool.

    Args:
        symbol_data:     Input handed unchanged to every producer.
        producers:       Card id -> producer function.
        max_workers:     Thread pool size.
        timeout_seconds: Wall-clock budget for the whole batch.

    Returns:
        ``GatherResult`` with outputs and failures.
    """
    result = GatherResult()
    if not producers:
        return result

    card_ids = sorted(producers)
    pool = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(card_ids))))
    try:
        futures = {cid: pool.submit(producers[cid], symbol_data) for cid in card_ids}
        deadline = time.monotonic() + timeout_seconds

        for cid in card_ids:
            future = futures[cid]
            remaining = max(0.0, deadline - time.monotonic())
            try:
                output = future.result(timeout=remaining)
            except FuturesTimeoutError:
                future.cancel()
                result.failures.append(
                    SkippedCard(card_id=cid, reason=f"producer_timeout: exceeded {timeout_seconds}s")
                )
                logger.warning(
                    "Producer %s timed out after %.1fs", cid, timeout_seconds,
                    extra={"card_id": cid},
                )
                continue
            except Exception as exc:
                result.failures.append(
                    SkippedCard(
                        card_id=cid,
                        reason=f"producer_error: {type(exc).__name__}: {exc}",
                    )
                )
                logger.warning(
                    "Producer %s raised %s", cid, type(exc).__name__,
                    exc_info=exc, extra={"card_id": cid},
                )
                continue

            if output is None:
                result.failures.append(
                    SkippedCard(card_id=cid, reason="producer_error: returned no output")
                )
                continue
            result.outputs.append(output)
    finally:
        pool.shutdown(wait=False, cancel_futures=True)

    logger.debug(
        "Gathered %d output(s), %d failure(s)", len(result.outputs), len(result.failures)
    )
    return result


def run_synthesis(
    symbol:          str,
    symbol_data:     Mapping[str, Any],
    producers:       Mapping[str, ProducerFn],
    engine:          Optional[SynthesisEngine] = None,
    producer_config: Optional[ProducerConfig] = None,
    tags:            Optional[set[str]] = None,
) -> CompositeResult:
    """Gather producer outputs for ``symbol`` and fuse them.

    Producer failures are merged into the composite's ``skipped_cards``.
    """
    cfg = producer_config or ProducerConfig()
    gathered = gather_card_outputs(
        symbol_data,
        producers,
        max_workers=cfg.max_workers,
        timeout_seconds=cfg.timeout_seconds,
    )
    return (engine or SynthesisEngine()).synthesize(
        symbol, gathered.outputs, tags=tags, prior_skips=gathered.failures,
    )
