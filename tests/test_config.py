"""
Tests for config.py: layered configuration loading.

What we test
------------
- The committed config/default.toml loads and matches the documented policy.
- A TOML file with partial sections falls back to model defaults.
- local.toml beside the config file overrides it.
- CARD_SYNTHESIS_* environment variables override TOML values.
- Invalid values (negative weights, inverted agreement thresholds or
  category bands) fail.
- Missing config files raise FileNotFoundError.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from card_synthesis.config import (
    DEFAULT_COMPOSITE_WEIGHTS,
    AppConfig,
    SynthesisConfig,
    load_config,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "CARD_SYNTHESIS_LOG_LEVEL",
        "CARD_SYNTHESIS_CARDS_FILE",
        "CARD_SYNTHESIS_TOP_N",
        "CARD_SYNTHESIS_MAX_WORKERS",
        "CARD_SYNTHESIS_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)


def _write_config(tmp_path, text: str):
    config_dir = tmp_path / "config"
    config_dir.mkdir(exist_ok=True)
    path = config_dir / "default.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaultConfig:
    def test_committed_default_loads(self):
        config = load_config()
        assert config.synthesis.deadband_per_card == 0.25
        assert config.synthesis.high_agreement == 0.75
        assert config.composite_weights == DEFAULT_COMPOSITE_WEIGHTS
        assert config.registry.cards_file.endswith("cards.toml")
        assert config.debug is False
        assert config.synthesis.max_action_items == 5
        assert config.synthesis.category_bullish_above == 60.0
        assert config.synthesis.category_bearish_below == 40.0
        assert config.reporting.output_dir == "data/outputs/composites"

    def test_model_defaults(self):
        config = AppConfig()
        assert config.synthesis.top_n_insights == 8
        assert config.producers.max_workers == 8
        assert config.logging.level == "INFO"


class TestLoadConfig:
    def test_partial_toml(self, tmp_path):
        path = _write_config(tmp_path, "[synthesis]\ndeadband_per_card = 0.5\n")
        config = load_config(path)
        assert config.synthesis.deadband_per_card == 0.5
        assert config.synthesis.top_n_insights == 8
        assert config.composite_weights == DEFAULT_COMPOSITE_WEIGHTS

    def test_local_override(self, tmp_path):
        path = _write_config(tmp_path, "[synthesis]\ntop_n_insights = 4\nmax_tags = 3\n")
        (path.parent / "local.toml").write_text(
            "[synthesis]\ntop_n_insights = 12\n", encoding="utf-8"
        )
        config = load_config(path)
        assert config.synthesis.top_n_insights == 12
        assert config.synthesis.max_tags == 3

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = _write_config(tmp_path, "[logging]\nlevel = \"INFO\"\n")
        monkeypatch.setenv("CARD_SYNTHESIS_LOG_LEVEL", "debug")
        monkeypatch.setenv("CARD_SYNTHESIS_TOP_N", "3")
        monkeypatch.setenv("CARD_SYNTHESIS_MAX_WORKERS", "2")
        monkeypatch.setenv("CARD_SYNTHESIS_DEBUG", "true")
        config = load_config(path)
        assert config.logging.level == "DEBUG"
        assert config.synthesis.top_n_insights == 3
        assert config.producers.max_workers == 2
        assert config.debug is True

    def test_relative_cards_file_resolved(self, tmp_path):
        path = _write_config(tmp_path, "[registry]\ncards_file = \"config/cards.toml\"\n")
        (path.parent / "cards.toml").write_text("", encoding="utf-8")
        config = load_config(path)
        assert config.registry.cards_file == str(tmp_path / "config" / "cards.toml")

    def test_custom_composite_weights(self, tmp_path):
        path = _write_config(tmp_path, "[composite_weights]\nvalue = 1.0\nrisk = 0.5\n")
        assert load_config(path).composite_weights == {"value": 1.0, "risk": 0.5}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_negative_composite_weight_rejected(self, tmp_path):
        path = _write_config(tmp_path, "[composite_weights]\nvalue = -0.1\n")
        with pytest.raises(ValidationError):
            load_config(path)


class TestSynthesisConfigValidation:
    def test_inverted_agreement_thresholds(self):
        with pytest.raises(ValidationError):
            SynthesisConfig(high_agreement=0.4, medium_agreement=0.6)

    def test_inverted_category_bands(self):
        with pytest.raises(ValidationError):
            SynthesisConfig(category_bullish_above=35.0, category_bearish_below=45.0)

    def test_category_band_above_hundred(self):
        with pytest.raises(ValidationError):
            SynthesisConfig(category_bullish_above=120.0)

    def test_negative_deadband(self):
        with pytest.raises(ValidationError):
            SynthesisConfig(deadband_per_card=-0.1)

    def test_bad_log_level(self, tmp_path):
        path = _write_config(tmp_path, "[logging]\nlevel = \"LOUD\"\n")
        with pytest.raises(ValidationError):
            load_config(path)
