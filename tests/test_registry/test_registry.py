"""
Tests for registry/registry.py: load, look up, and list card specs.

Covers:
  - Loading a valid cards.toml produces correct CardSpec instances
  - get_card_spec() returns the spec by ID and raises KeyError otherwise
  - list_cards() returns specs sorted by card_id, optionally by category
  - FileNotFoundError raised for a missing cards.toml
  - Registry cache is populated and respected between calls
  - CardRegistry lookups tolerate unknown ids
  - The committed config/cards.toml parses

Tests use a temporary TOML file rather than the real config/cards.toml where
they assert on specific contents.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from card_synthesis.registry.models import CardSpec
from card_synthesis.registry.registry import (
    CardRegistry,
    _load_registry,
    clear_registry_cache,
    get_card_spec,
    get_registry,
    known_card_ids,
    list_cards,
)


# ── Helpers ───────────────────────────────────────────────────────────────────


MINIMAL_CARDS_TOML = """\
[cards.trend-strength]
display_name = "Trend Strength"
category     = "momentum"
weight       = 0.7

[cards.dcf-valuation]
display_name = "DCF Valuation"
category     = "value"
weight       = 0.9
description  = "Discounted cash flow."

[cards.pattern-matcher]
display_name = "Pattern Matcher"
category     = "momentum"
weight       = 0.3
enabled      = false
"""


def _write(tmp_path: Path, text: str = MINIMAL_CARDS_TOML) -> str:
    path = tmp_path / "cards.toml"
    path.write_text(text, encoding="utf-8")
    return str(path)


# ── Loading ───────────────────────────────────────────────────────────────────


class TestLoadRegistry:
    def test_loads_specs(self, tmp_path):
        registry = _load_registry(Path(_write(tmp_path)))
        assert set(registry) == {"trend-strength", "dcf-valuation", "pattern-matcher"}
        spec = registry["dcf-valuation"]
        assert spec.category == "value"
        assert spec.weight == 0.9
        assert spec.description == "Discounted cash flow."
        assert spec.enabled is True

    def test_defaults(self, tmp_path):
        path = _write(tmp_path, '[cards.bare]\ncategory = "macro"\n')
        spec = _load_registry(Path(path))["bare"]
        assert spec.display_name == "bare"
        assert spec.weight == 0.5
        assert spec.enabled is True

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Card registry file not found"):
            _load_registry(tmp_path / "nope.toml")

    def test_invalid_weight(self, tmp_path):
        path = _write(tmp_path, '[cards.bad]\ncategory = "risk"\nweight = 1.5\n')
        with pytest.raises(ValidationError):
            _load_registry(Path(path))

    def test_missing_category(self, tmp_path):
        path = _write(tmp_path, '[cards.bad]\ndisplay_name = "Bad"\n')
        with pytest.raises(ValidationError):
            _load_registry(Path(path))


class TestLookups:
    def test_get_card_spec(self, tmp_path):
        spec = get_card_spec("trend-strength", cards_path=_write(tmp_path))
        assert spec.category == "momentum"

    def test_get_card_spec_unknown(self, tmp_path):
        with pytest.raises(KeyError, match="not found in registry"):
            get_card_spec("nope", cards_path=_write(tmp_path))

    def test_list_cards_sorted(self, tmp_path):
        ids = [s.card_id for s in list_cards(cards_path=_write(tmp_path))]
        assert ids == ["dcf-valuation", "pattern-matcher", "trend-strength"]

    def test_known_card_ids(self, tmp_path):
        assert known_card_ids(cards_path=_write(tmp_path)) == [
            "dcf-valuation", "pattern-matcher", "trend-strength",
        ]

    def test_list_cards_by_category(self, tmp_path):
        specs = list_cards(category="momentum", cards_path=_write(tmp_path))
        assert [s.card_id for s in specs] == ["pattern-matcher", "trend-strength"]


class TestCache:
    def test_cached_between_calls(self, tmp_path):
        path = _write(tmp_path)
        assert get_registry(path) is get_registry(path)

    def test_clear_cache_forces_reload(self, tmp_path):
        path = _write(tmp_path)
        first = get_registry(path)
        clear_registry_cache()
        assert get_registry(path) is not first


class TestCardRegistry:
    def test_from_file(self, tmp_path):
        registry = CardRegistry.from_file(_write(tmp_path))
        assert len(registry) == 3
        assert "trend-strength" in registry
        assert registry.categories() == ["momentum", "value"]

    def test_tolerates_unknown_ids(self):
        registry = CardRegistry([CardSpec(card_id="a", display_name="A", category="risk")])
        assert registry.get("missing") is None
        assert not registry.is_known("missing")
        assert not registry.is_recommendable("missing")

    def test_disabled_not_recommendable(self, tmp_path):
        registry = CardRegistry.from_file(_write(tmp_path))
        assert registry.is_known("pattern-matcher")
        assert not registry.is_recommendable("pattern-matcher")
        assert registry.is_recommendable("trend-strength")


class TestCommittedRegistry:
    def test_default_cards_file_parses(self):
        registry = CardRegistry.from_file()
        assert len(registry) > 0
        assert set(registry.categories()) <= {
            "value", "quality", "growth", "momentum", "risk", "cashflow", "income", "macro",
        }
