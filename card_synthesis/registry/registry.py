"""
Card registry.

Loads ``CardSpec`` objects from config/cards.toml (or a caller-supplied path)
and provides lookup utilities.

Usage
-----
    from card_synthesis.registry.registry import get_card_spec, list_cards

    spec = get_card_spec("piotroski-score")
    risk_cards = list_cards(category="risk")

The registry is loaded lazily on first access and then cached for the
lifetime of the process.  To force a reload (e.g., in tests), pass an
explicit ``cards_path`` argument or call ``clear_registry_cache()``.

The synthesis engine does not read the TOML file itself; it receives a
``CardRegistry`` built from the loaded specs.

TOML structure expected in cards.toml
-------------------------------------
    [cards.<card_id>]
    display_name = "Piotroski F-Score"
    category     = "quality"
    weight       = 0.8
    description  = "..."
    enabled      = true
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Iterable, Optional

from card_synthesis.registry.models import CardSpec

# ── Module-level cache ────────────────────────────────────────────────────────

_REGISTRY_CACHE: Optional[dict[str, CardSpec]] = None
_CACHE_PATH: Optional[str] = None

_PROJECT_ROOT = Path(__file__).parent.parent.parent


def _default_cards_path() -> Path:
    """Return the default path to config/cards.toml."""
    return _PROJECT_ROOT / "config" / "cards.toml"


def _parse_card(card_id: str, raw: dict) -> CardSpec:
    """Parse one [cards.<id>] block into a CardSpec instance.

    Raises:
        pydantic.ValidationError: If any field fails validation.
    """
    return CardSpec(
        card_id=raw.get("card_id", card_id),
        display_name=raw.get("display_name", card_id),
        category=raw.get("category", ""),
        weight=raw.get("weight", 0.5),
        description=raw.get("description", ""),
        enabled=raw.get("enabled", True),
    )


def _load_registry(cards_path: Path) -> dict[str, CardSpec]:
    """Load and parse cards.toml into a dict of card_id -> CardSpec.

    Raises:
        FileNotFoundError: If cards_path does not exist.
        tomllib.TOMLDecodeError: If the TOML is malformed.
        pydantic.ValidationError: If a card spec fails validation.
    """
    if not cards_path.exists():
        raise FileNotFoundError(
            f"Card registry file not found: {cards_path}\n"
            "Expected at config/cards.toml.  "
            "Set registry.cards_file in default.toml to override."
        )

    with open(cards_path, "rb") as f:
        raw = tomllib.load(f)

    registry: dict[str, CardSpec] = {}
    for cid, block in raw.get("cards", {}).items():
        spec = _parse_card(cid, block)
        registry[spec.card_id] = spec

    return registry


def get_registry(cards_path: Optional[str] = None) -> dict[str, CardSpec]:
    """Return the full card registry (cached after first load).

    Args:
        cards_path: Override path to cards.toml.  If None, uses the default
                    config/cards.toml relative to project root.

    Returns:
        Dict mapping card_id -> CardSpec.
    """
    global _REGISTRY_CACHE, _CACHE_PATH

    resolved = Path(cards_path) if cards_path else _default_cards_path()
    resolved_str = str(resolved)

    if _REGISTRY_CACHE is None or _CACHE_PATH != resolved_str:
        _REGISTRY_CACHE = _load_registry(resolved)
        _CACHE_PATH = resolved_str

    return _REGISTRY_CACHE


def get_card_spec(card_id: str, cards_path: Optional[str] = None) -> CardSpec:
    """Look up a single card spec by ID.

    Raises:
        KeyError: If card_id is not found in the registry.
    """
    registry = get_registry(cards_path)
    if card_id not in registry:
        available = sorted(registry.keys())
        raise KeyError(
            f"Card '{card_id}' not found in registry.  "
            f"Available cards: {available}"
        )
    return registry[card_id]


def list_cards(
    category: Optional[str] = None,
    cards_path: Optional[str] = None,
) -> list[CardSpec]:
    """Return registered card specs sorted by card_id, optionally by category."""
    registry = get_registry(cards_path)
    specs = sorted(registry.values(), key=lambda s: s.card_id)
    if category is not None:
        specs = [s for s in specs if s.category == category]
    return specs


def known_card_ids(cards_path: Optional[str] = None) -> list[str]:
    """Return every registered card_id, sorted."""
    return sorted(get_registry(cards_path))


def clear_registry_cache() -> None:
    """Clear the module-level registry cache."""
    global _REGISTRY_CACHE, _CACHE_PATH
    _REGISTRY_CACHE = None
    _CACHE_PATH = None


class CardRegistry:
    """Read-only view over a set of ``CardSpec`` values handed to the engine.

    Lookups that miss return ``None`` / ``False`` rather than raising:
    cross-card references are soft, and the engine must tolerate ids it
    has never heard of.
    """

    def __init__(self, specs: Iterable[CardSpec] = ()) -> None:
        self._specs: dict[str, CardSpec] = {s.card_id: s for s in specs}

    @classmethod
    def from_file(cls, cards_path: Optional[str] = None) -> "CardRegistry":
        """Build a registry from cards.toml (via the module cache)."""
        return cls(get_registry(cards_path).values())

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._specs

    def get(self, card_id: str) -> Optional[CardSpec]:
        return self._specs.get(card_id)

    def is_known(self, card_id: str) -> bool:
        return card_id in self._specs

    def is_recommendable(self, card_id: str) -> bool:
        """Known and enabled."""
        spec = self._specs.get(card_id)
        return spec is not None and spec.enabled

    def card_ids(self) -> list[str]:
        return sorted(self._specs)

    def categories(self) -> list[str]:
        return sorted({s.category for s in self._specs.values()})
