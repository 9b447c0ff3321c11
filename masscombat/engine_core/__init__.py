"""
Engine Core - Deterministic battle state management and combat resolution.

The engine is the runtime that:
1. Holds BattleState for two sides
2. Resolves card effects against the battle context
3. Generates legal actions per side
4. Applies actions via the reducer
5. Resolves combat and sequences phases
"""

from .cards import Card, CardInstance, CardCatalog, UnitType
from .state import (
    BattleState, BattlePhase, Side, Commander, Environment, LogEntry,
    PlayedCard, EngineInvariantViolation, check_invariants,
)
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode
from .effect_resolver import (
    EffectType, EffectResult, ClimateIgnore, GameContext,
    resolve, combine, resolve_all, describe_effect,
)
from .rules import BattleRules, CommandRules, CombatRules, EnvironmentRules, DEFAULT_RULES
from .rng import DiceSource, SeededDice, FixedDice
from .combat import RoundReport, StrikeReport, resolve_round
from .reducer import Reducer, apply_action
from .action_generator import legal_actions, legal_plays
from .view import SideView, OpponentView, observe

__all__ = [
    "Card",
    "CardInstance",
    "CardCatalog",
    "UnitType",
    "BattleState",
    "BattlePhase",
    "Side",
    "Commander",
    "Environment",
    "LogEntry",
    "PlayedCard",
    "EngineInvariantViolation",
    "check_invariants",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "EffectType",
    "EffectResult",
    "ClimateIgnore",
    "GameContext",
    "resolve",
    "combine",
    "resolve_all",
    "describe_effect",
    "BattleRules",
    "CommandRules",
    "CombatRules",
    "EnvironmentRules",
    "DEFAULT_RULES",
    "DiceSource",
    "SeededDice",
    "FixedDice",
    "RoundReport",
    "StrikeReport",
    "resolve_round",
    "Reducer",
    "apply_action",
    "legal_actions",
    "legal_plays",
    "observe",
    "SideView",
    "OpponentView",
]
