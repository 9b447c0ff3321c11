"""
Card Evaluator - Scores cards for bot decision-making.

Two scores:
- heuristic value: weighted bonuses minus command cost, boosted for
  defense when the bot is low and for attack when the enemy is low
- expected damage: base attack + mean roll + resolver modifiers in
  the current context

Weights can be adjusted per difficulty.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.cards import Card
from ..engine_core.effect_resolver import resolve
from ..engine_core.rules import CombatRules

if TYPE_CHECKING:
    from ..engine_core.view import SideView


@dataclass
class EvaluationWeights:
    """
    Weights for the card evaluator.

    Higher values = more importance.
    """
    attack: float = 1.5
    defense: float = 1.2
    mobility: float = 1.0
    command_cost: float = -0.5

    # Hit points at or below which a side counts as "low"
    low_hp_threshold: int = 3
    low_hp_multiplier: float = 1.5


class CardEvaluator:
    """
    Evaluates cards from one side's point of view.

    Used by bots:
    1. Enumerate legal plays
    2. Score each card
    3. Select the best card (hard) or sample (easier tiers)
    """

    def __init__(
        self,
        weights: EvaluationWeights | None = None,
        combat_rules: CombatRules | None = None,
    ):
        self.weights = weights or EvaluationWeights()
        self.combat_rules = combat_rules or CombatRules()

    def heuristic_value(self, card: Card, view: SideView) -> float:
        w = self.weights
        value = (
            card.attack_bonus * w.attack
            + card.defense_bonus * w.defense
            + card.mobility_bonus * w.mobility
            + card.command_required * w.command_cost
        )
        if view.hp <= w.low_hp_threshold and card.defense_bonus > card.attack_bonus:
            value *= w.low_hp_multiplier
        if view.opponent.hp <= w.low_hp_threshold and card.attack_bonus > card.defense_bonus:
            value *= w.low_hp_multiplier
        return value

    @property
    def expected_roll(self) -> float:
        return (self.combat_rules.roll_min + self.combat_rules.roll_max) / 2

    def expected_damage(self, card: Card, view: SideView) -> float:
        """
        Damage this card adds to a strike, before the enemy's defense.

        Enemy defense debuffs count as damage since they lower what the
        strike must overcome.
        """
        result = resolve(card, view.context)
        damage = card.attack_bonus + self.expected_roll
        damage += result.attack_modifier - result.enemy_defense_modifier
        if view.opponent.hp <= card.attack_bonus + self.expected_roll:
            damage += result.extra_damage_on_win
        return damage
