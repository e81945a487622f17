"""
Pydantic v2 model for static card configuration.

Each ``CardSpec`` describes one analysis card the dashboard knows about:
its fusion category and default weight.  Instances are loaded from
config/cards.toml by the registry module and are immutable (frozen=True).

The registry holds *data only*.  How a card computes its output is the
producer's business; nothing here references producer code.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator


class CardSpec(BaseModel):
    """Static configuration for one analysis card.

    Attributes:
        card_id:      Stable identifier, e.g. ``"piotroski-score"``.
        display_name: Human-readable card title.
        category:     Fusion category the card reports into.
        weight:       Default contribution weight (0–1), used when the card
                      emits no ``scoreContribution`` of its own.
        description:  Short free-form description.
        enabled:      Disabled cards are never recommended as follow-ups.
    """

    model_config = ConfigDict(frozen=True)

    card_id:      str
    display_name: str
    category:     str
    weight:       float = 0.5
    description:  str = ""
    enabled:      bool = True

    @field_validator("card_id", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("card_id and category must not be empty.")
        return v.strip()

    @field_validator("weight")
    @classmethod
    def weight_in_unit_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"CardSpec.weight must be in [0, 1], got {v}.")
        return v
