"""
Bot Difficulty - Configurable play strength.

A difficulty profile adjusts:
- How often the bot passes with a legal play available
- How often it picks at random instead of by its selection rule
- The selection rule itself (random, attack-weighted, optimal)
- How aggressively it bids for initiative
- How long it appears to think
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from .evaluator import EvaluationWeights


class Difficulty(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Selection(Enum):
    """How a bot picks among legal cards."""
    RANDOM = "random"  # Uniform
    WEIGHTED = "weighted"  # Proportional to attack bonus
    OPTIMAL = "optimal"  # Highest expected damage


class Formation(Enum):
    AGGRESSIVE = "aggressive"
    BALANCED = "balanced"
    DEFENSIVE = "defensive"


@dataclass
class DifficultyProfile:
    """
    Behavioral parameters for one difficulty tier.

    None of these change rule outcomes; they only steer which legal
    action the bot submits and when.
    """
    difficulty: Difficulty
    selection: Selection
    pass_chance: float  # Pass even with a legal play
    random_factor: float  # Chance of ignoring the selection rule
    bid_multiplier: float  # Fraction of the maximum bid
    thinking_delay: tuple[float, float]  # Seconds, (min, max)
    preferred_cultures: tuple[str, ...] = ("Anuire", "Khinasi", "Vos")
    weights: EvaluationWeights = field(default_factory=EvaluationWeights)
    names: tuple[str, ...] = ()


EASY = DifficultyProfile(
    difficulty=Difficulty.EASY,
    selection=Selection.RANDOM,
    pass_chance=0.4,
    random_factor=0.7,
    bid_multiplier=0.3,
    thinking_delay=(0.5, 1.0),
    names=("Cursed Recruit", "Sorcerer's Apprentice", "Novice Soldier"),
)


MEDIUM = DifficultyProfile(
    difficulty=Difficulty.MEDIUM,
    selection=Selection.WEIGHTED,
    pass_chance=0.2,
    random_factor=0.4,
    bid_multiplier=0.5,
    thinking_delay=(0.8, 1.5),
    names=("Shadow Captain", "Knight of the Mists", "Grim Tactician"),
)


HARD = DifficultyProfile(
    difficulty=Difficulty.HARD,
    selection=Selection.OPTIMAL,
    pass_chance=0.05,
    random_factor=0.1,
    bid_multiplier=0.8,
    thinking_delay=(1.0, 2.0),
    names=("General of Darkness", "Warlord", "Master Strategist"),
)


PROFILES: dict[Difficulty, DifficultyProfile] = {
    Difficulty.EASY: EASY,
    Difficulty.MEDIUM: MEDIUM,
    Difficulty.HARD: HARD,
}


def get_profile(difficulty: Difficulty | str) -> DifficultyProfile:
    """Look up a profile by enum or name. Raises ValueError for unknown names."""
    return PROFILES[Difficulty(difficulty)]
