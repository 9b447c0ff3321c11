"""
Rules Configuration - Numeric constants consumed by the engine.

Nothing in here is engine logic. Restoration amounts, dice ranges,
penalty tables and starting hit points are data that a scenario can
override by passing its own BattleRules into the reducer.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass(frozen=True)
class CommandRules:
    """Command point economy constants."""
    restore_amount: int = 1  # Per commander, at end of round
    general_restore_amount: int = 1  # Shared general pool, at end of round
    enforce_specialization: bool = True
    out_of_specialization_extra_cost: int = 1  # flexibility_any_extra_cost
    force_tap_max_base: int = 1  # force_tap_commander targets Command 1 commanders


@dataclass(frozen=True)
class CombatRules:
    """Damage calculation constants."""
    roll_min: int = 1
    roll_max: int = 5
    subtract_defense: bool = True
    max_hp: int = 100


@dataclass(frozen=True)
class EnvironmentRules:
    """
    Climate and terrain penalties applied to a side's attack.

    Keys are the climate/terrain names used by the scenario data.
    """
    climate_penalties: dict[str, int] = field(default_factory=lambda: {
        "Calor": 1,
        "Deserto": 1,
        "Tempestade": 1,
        "Nevasca": 2,
    })
    heat_climates: frozenset[str] = frozenset({"Calor", "Deserto"})
    terrain_penalties: dict[str, int] = field(default_factory=lambda: {
        "Acidentado": 1,
        "Alagado": 1,
    })


@dataclass(frozen=True)
class BattleRules:
    """Top-level rules bundle passed to the reducer."""
    starting_hp: int = 10
    hand_size: int = 7
    specialist_count: int = 2
    log_limit: int = 200
    command: CommandRules = field(default_factory=CommandRules)
    combat: CombatRules = field(default_factory=CombatRules)
    environment: EnvironmentRules = field(default_factory=EnvironmentRules)


DEFAULT_RULES = BattleRules()
