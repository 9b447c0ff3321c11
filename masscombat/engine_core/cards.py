"""
Cards - Tactical card definitions and the catalog that serves them.

A Card is pure data: base bonuses, a command cost and an optional
effect tag. Runtime copies held in hands and piles are CardInstances,
so two copies of the same definition stay distinguishable.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class UnitType(Enum):
    """Unit-type affinity of a card (and specialization of a commander)."""
    INFANTRY = "Infantaria"
    CAVALRY = "Cavalaria"
    ARCHER = "Arqueiros"
    SIEGE = "Cerco"
    GENERAL = "Geral"


@dataclass(frozen=True)
class Card:
    """
    A tactical card definition.

    effect_type is kept as the raw tag string so cards loaded from
    data with tags this engine does not know still round-trip; the
    effect resolver treats unknown tags as "no effect".
    """
    card_id: str
    name: str
    unit_type: UnitType | None = None
    attack_bonus: int = 0
    defense_bonus: int = 0
    mobility_bonus: int = 0
    command_required: int = 0
    effect_type: str | None = None

    # Catalog metadata (deck construction only)
    culture: str | None = None
    vet_cost: int = 0
    description: str = ""

    def __post_init__(self):
        if self.command_required < 0:
            raise ValueError(f"Card {self.card_id}: command_required must be >= 0")


@dataclass(frozen=True)
class CardInstance:
    """A card in a hand, pile or in play."""
    instance_id: str
    card: Card

    @property
    def card_id(self) -> str:
        return self.card.card_id

    @property
    def name(self) -> str:
        return self.card.name


@dataclass
class CardCatalog:
    """
    Queryable collection of card definitions.

    Usage:
        catalog = CardCatalog.from_cards(cards)
        card = catalog.get("shield_wall")
        pool = catalog.for_culture("Anuire")
    """
    cards: dict[str, Card] = field(default_factory=dict)

    @classmethod
    def from_cards(cls, cards: Iterable[Card]) -> CardCatalog:
        catalog = cls()
        for card in cards:
            if card.card_id in catalog.cards:
                raise ValueError(f"Duplicate card id: {card.card_id}")
            catalog.cards[card.card_id] = card
        return catalog

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, card_id: str) -> bool:
        return card_id in self.cards

    def get(self, card_id: str) -> Card | None:
        """Get a card definition by ID."""
        return self.cards.get(card_id)

    def all(self) -> list[Card]:
        return list(self.cards.values())

    def for_culture(self, culture: str | None) -> list[Card]:
        """Cards usable by a culture: its own cards plus culture-neutral ones."""
        return [
            c for c in self.cards.values()
            if c.culture is None or c.culture == culture
        ]

