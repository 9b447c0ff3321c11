"""
Bot Policy - Interface for bot decision-making.

A BotPolicy takes one side's view of the battle and returns a decision.
Decisions are either a play_card action (a specific card with a
specific commander) or a pass.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import random

from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import legal_plays
from ..engine_core.state import BattlePhase
from ..engine_core.view import SideView


class BotTurnState(Enum):
    """Where a bot is within its own turn."""
    IDLE = "idle"
    THINKING = "thinking"
    COMMITTED = "committed"


@dataclass
class BotDecision:
    """
    A decision made by a bot.

    Contains:
    - The action to take
    - Explanation (for UI/debugging)
    - Confidence in the decision
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    # Evaluation details (for debugging)
    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_pass(self) -> bool:
        return self.action.action_type == ActionType.PASS


@dataclass
class DeferredDecision:
    """
    A decision whose delivery is postponed for pacing.

    The decision is already final; only the hand-off waits.
    """
    decision: BotDecision
    delay_seconds: float = 0.0

    def deliver(self, sleep: Callable[[float], Any] | None = None) -> BotDecision:
        if sleep is not None and self.delay_seconds > 0:
            sleep(self.delay_seconds)
        return self.decision


def require_actions_phase(view: SideView) -> None:
    if view.phase != BattlePhase.ACTIONS:
        raise ValueError(f"Bots decide only in the actions phase, not {view.phase.value}")


class BotPolicy(ABC):
    """
    Abstract base class for bot policies.

    A policy defines how a bot selects actions.
    Implementations see only a SideView, never the opponent's hand.
    """

    @abstractmethod
    def decide(self, view: SideView) -> BotDecision:
        """
        Select a play_card or pass action.

        Args:
            view: The bot side's filtered view of the battle

        Returns:
            BotDecision with the selected action
        """
        pass

    def deliberate(self, view: SideView) -> DeferredDecision:
        """Decide now; policies without pacing deliver immediately."""
        return DeferredDecision(decision=self.decide(view))

    def commit(self, deferred: DeferredDecision, sleep=None) -> BotDecision:
        return deferred.deliver(sleep)

    def reset_turn(self) -> None:
        pass

    def get_name(self) -> str:
        """Get the bot's name/identifier."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """
    Random policy - plays a uniformly random legal pair, or passes.

    Used for:
    - Testing
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def decide(self, view: SideView) -> BotDecision:
        require_actions_phase(view)
        plays = legal_plays(view.as_side())
        if not plays:
            return BotDecision(action=Action.pass_(view.side_id), explanation="No legal play")

        instance, commander_id = self.rng.choice(plays)
        return BotDecision(
            action=Action.play_card(view.side_id, instance.instance_id, commander_id),
            explanation="Selected randomly",
            confidence=1.0 / len(plays),
            evaluated_actions=len(plays),
        )


class FirstLegalPolicy(BotPolicy):
    """
    First-legal policy - always plays the first legal pair.

    Used for:
    - Deterministic testing
    """

    def decide(self, view: SideView) -> BotDecision:
        require_actions_phase(view)
        plays = legal_plays(view.as_side())
        if not plays:
            return BotDecision(action=Action.pass_(view.side_id), explanation="No legal play")

        instance, commander_id = plays[0]
        return BotDecision(
            action=Action.play_card(view.side_id, instance.instance_id, commander_id),
            explanation="Selected first legal play",
            evaluated_actions=1,
        )
