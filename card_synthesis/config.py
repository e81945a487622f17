"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``     : committed static defaults
  2. ``config/local.toml``       : optional local overrides (gitignored)
  3. ``.env``                    : local overrides (gitignored)
  4. Environment variables       : ``CARD_SYNTHESIS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The synthesis engine, the producer runner and the CLI all receive an
``AppConfig`` (or one of its sections): never raw dicts or env var lookups
scattered through the codebase.  Policy constants that shape the verdict
(deadband, agreement thresholds, the category → composite weight table)
live here so they stay explicit and testable.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class SynthesisConfig(BaseModel):
    """Fusion policy constants.

    Attributes:
        top_n_insights:           Insights kept after ranking and de-duplication.
        top_n_metrics:            Metrics surfaced across all cards.
        max_recommended_cards:    Follow-up card suggestions kept.
        max_tags:                 Most frequent tags kept.
        max_action_items:         Action items surfaced across all cards.
        deadband_per_card:        Neutral zone half-width per accepted card;
                                  |signed_sum| < n_cards * deadband_per_card → neutral.
        high_agreement:           Agreement ratio at or above which confidence is high.
        medium_agreement:         Agreement ratio at or above which confidence is medium.
        unlisted_category_weight: Composite weight for categories missing from
                                  the ``composite_weights`` table.
        score_decimals:           Rounding applied to category and overall scores.
        category_bullish_above:   Category score above which the category reads bullish.
        category_bearish_below:   Category score below which the category reads bearish.
    """

    model_config = ConfigDict(frozen=True)

    top_n_insights: int = 8
    top_n_metrics: int = 10
    max_recommended_cards: int = 5
    max_tags: int = 10
    max_action_items: int = 5
    deadband_per_card: float = 0.25
    high_agreement: float = 0.75
    medium_agreement: float = 0.50
    unlisted_category_weight: float = 0.5
    score_decimals: int = 2
    category_bullish_above: float = 60.0
    category_bearish_below: float = 40.0

    @field_validator(
        "top_n_insights", "top_n_metrics", "max_recommended_cards", "max_tags",
        "max_action_items", "score_decimals",
    )
    @classmethod
    def non_negative_int(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Value must be >= 0, got {v}.")
        return v

    @field_validator("deadband_per_card", "unlisted_category_weight")
    @classmethod
    def non_negative_float(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError(f"Value must be >= 0.0, got {v}.")
        return v

    @model_validator(mode="after")
    def agreement_thresholds_ordered(self) -> "SynthesisConfig":
        if not 0.0 <= self.medium_agreement <= self.high_agreement <= 1.0:
            raise ValueError(
                "Agreement thresholds must satisfy 0 <= medium_agreement "
                f"({self.medium_agreement}) <= high_agreement "
                f"({self.high_agreement}) <= 1."
            )
        return self

    @model_validator(mode="after")
    def category_bands_ordered(self) -> "SynthesisConfig":
        if not 0.0 <= self.category_bearish_below <= self.category_bullish_above <= 100.0:
            raise ValueError(
                "Category bands must satisfy 0 <= category_bearish_below "
                f"({self.category_bearish_below}) <= category_bullish_above "
                f"({self.category_bullish_above}) <= 100."
            )
        return self


DEFAULT_COMPOSITE_WEIGHTS: dict[str, float] = {
    "value":     0.20,
    "quality":   0.15,
    "growth":    0.15,
    "momentum":  0.15,
    "risk":      0.15,
    "cashflow":  0.08,
    "income":    0.04,
    "macro":     0.08,
}


class RegistryConfig(BaseModel):
    """Location of the static card registry."""

    model_config = ConfigDict(frozen=True)

    cards_file: str = "config/cards.toml"


class ProducerConfig(BaseModel):
    """Concurrency limits for gathering card outputs."""

    model_config = ConfigDict(frozen=True)

    max_workers: int = 8
    timeout_seconds: float = 10.0

    @field_validator("max_workers")
    @classmethod
    def positive_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}.")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0.0:
            raise ValueError(f"timeout_seconds must be > 0, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class ReportingConfig(BaseModel):
    """Where ``synthesize --save`` writes composite JSON when no
    ``--output-dir`` is given."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs/composites"


class AppConfig(BaseModel):
    """Complete application configuration: the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    synthesis: SynthesisConfig = SynthesisConfig()
    composite_weights: dict[str, float] = dict(DEFAULT_COMPOSITE_WEIGHTS)
    registry: RegistryConfig = RegistryConfig()
    producers: ProducerConfig = ProducerConfig()
    logging: LoggingConfig = LoggingConfig()
    reporting: ReportingConfig = ReportingConfig()
    debug: bool = False

    @field_validator("composite_weights")
    @classmethod
    def validate_composite_weights(cls, v: dict[str, float]) -> dict[str, float]:
        for category, weight in v.items():
            if weight < 0.0:
                raise ValueError(
                    f"composite weight for '{category}' must be >= 0, got {weight}."
                )
        return v


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply CARD_SYNTHESIS_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw, base_dir=config_path.parent.parent)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CARD_SYNTHESIS_* env vars to the raw config dict.

    Supported overrides:
      CARD_SYNTHESIS_LOG_LEVEL    → raw["logging"]["level"]
      CARD_SYNTHESIS_CARDS_FILE   → raw["registry"]["cards_file"]
      CARD_SYNTHESIS_TOP_N        → raw["synthesis"]["top_n_insights"]
      CARD_SYNTHESIS_MAX_WORKERS  → raw["producers"]["max_workers"]
      CARD_SYNTHESIS_DEBUG        → raw["debug"]
    """
    if log_level := os.environ.get("CARD_SYNTHESIS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if cards_file := os.environ.get("CARD_SYNTHESIS_CARDS_FILE"):
        raw.setdefault("registry", {})["cards_file"] = cards_file

    if top_n := os.environ.get("CARD_SYNTHESIS_TOP_N"):
        raw.setdefault("synthesis", {})["top_n_insights"] = int(top_n)

    if max_workers := os.environ.get("CARD_SYNTHESIS_MAX_WORKERS"):
        raw.setdefault("producers", {})["max_workers"] = int(max_workers)

    if debug := os.environ.get("CARD_SYNTHESIS_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any], base_dir: Optional[Path] = None) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure.

    A relative ``registry.cards_file`` is resolved against ``base_dir`` (the
    directory holding ``config/``) when that file exists there.
    """
    project = raw.pop("project", {})

    registry_raw = dict(raw.get("registry", {}))
    cards_file = registry_raw.get("cards_file")
    if cards_file and base_dir is not None and not Path(cards_file).is_absolute():
        candidate = base_dir / cards_file
        if candidate.exists():
            registry_raw["cards_file"] = str(candidate)

    return AppConfig(
        synthesis=SynthesisConfig(**raw.get("synthesis", {})),
        composite_weights=raw.get("composite_weights", dict(DEFAULT_COMPOSITE_WEIGHTS)),
        registry=RegistryConfig(**registry_raw),
        producers=ProducerConfig(**raw.get("producers", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        reporting=ReportingConfig(**raw.get("reporting", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
