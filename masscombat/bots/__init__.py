"""
Bots module - Opponent AI implementations.

Provides:
- BotPolicy: Interface for bot decision-making
- CardEvaluator: Scores cards from a side's view
- CombatBot: Difficulty-tuned mass combat opponent
- DifficultyProfile: Configurable play strength
"""

from .policy import (
    BotPolicy, BotDecision, BotTurnState, DeferredDecision, RandomPolicy, FirstLegalPolicy,
)
from .evaluator import CardEvaluator, EvaluationWeights
from .difficulty import Difficulty, DifficultyProfile, Formation, Selection, PROFILES, get_profile
from .combat_bot import CombatBot, ScenarioChoice

__all__ = [
    "BotPolicy",
    "BotDecision",
    "BotTurnState",
    "DeferredDecision",
    "RandomPolicy",
    "FirstLegalPolicy",
    "CardEvaluator",
    "EvaluationWeights",
    "Difficulty",
    "DifficultyProfile",
    "Formation",
    "Selection",
    "PROFILES",
    "get_profile",
    "CombatBot",
    "ScenarioChoice",
]
