"""
Logging setup for the card synthesis engine.

Call ``configure_logging(config)`` once at CLI entry, before any fusion work.
Library modules only ever do ``logger = logging.getLogger(__name__)``; they
never call ``configure_logging`` or ``basicConfig`` themselves.

Fusion context
--------------
One process may fuse many symbols at once (``synthesize_many``), so records
carry their context as ``extra=`` fields instead of in the message text:

  - ``symbol``  : stamped on every record by ``symbol_logger(logger, symbol)``
  - ``card_id`` : the card a skip or producer failure concerns
  - ``reason``  : why the card was skipped

Text format appends whichever of these are present::

    2026-10-19T09:00:00Z [WARNING] card_synthesis.synthesis.engine: Skipped card ... [symbol=RELIANCE card_id=dcf-valuation]

JSON format (``json_format = true`` under ``[logging]``) lifts every
``extra=`` field to the top level of the line's object::

    {"ts": "2026-10-19T09:00:00Z", "level": "WARNING",
     "logger": "card_synthesis.synthesis.engine", "msg": "Skipped card ...",
     "symbol": "RELIANCE", "card_id": "dcf-valuation", "reason": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, MutableMapping

if TYPE_CHECKING:
    from card_synthesis.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Shown in text lines, in this order, when a record carries them.
CONTEXT_FIELDS = ("symbol", "card_id")

# Attributes every LogRecord carries; anything else came in through extra=.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime"}


class SymbolLogAdapter(logging.LoggerAdapter):
    """Stamp the adapter's context onto every record.

    Unlike the stdlib default, call-site ``extra=`` is merged with the
    adapter's context rather than discarded.
    """

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def symbol_logger(logger: logging.Logger, symbol: str) -> SymbolLogAdapter:
    """Return ``logger`` wrapped so every record carries ``symbol``."""
    return SymbolLogAdapter(logger, {"symbol": symbol})


class _TextFormatter(logging.Formatter):
    """``LOG_FORMAT`` plus a ``[symbol=... card_id=...]`` suffix when present."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        )
        return f"{line} [{context}]" if context else line


class _JsonFormatter(logging.Formatter):
    """Emit one JSON object per log line.

    Fields: ``ts``, ``level``, ``logger``, ``msg`` plus any ``extra=`` keys.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        for key, val in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = val
        return json.dumps(payload, default=str)


def build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return _TextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from a ``LoggingConfig`` instance.

    Console output goes to stderr so ``synthesize --json`` keeps stdout
    machine-readable.  ``config.log_file``, when set, receives the same lines.

    Args:
        config: Logging configuration section from ``AppConfig``.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = build_formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
