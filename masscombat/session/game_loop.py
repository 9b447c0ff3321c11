"""
Game Loop - Drives a battle between a human side and bots.

The loop:
1. Advance the battle from pre_combat into the first actions phase
2. Sides alternate in the actions phase, initiative side first
3. Bot sides decide from their own view and act through the reducer
4. Stop and wait whenever the human side is expected to act
5. Once both sides have passed, run resolve and end_round
6. Repeat until a side is routed (or the round limit is hit)

Every state change goes through the session's reducer; the loop
never edits the battle state itself.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING

from loguru import logger

from ..engine_core.action import Action, ActionResult, ActionType, ErrorCode
from ..engine_core.state import BattlePhase, BattleState
from ..engine_core.view import SideView, observe

if TYPE_CHECKING:
    from .manager import Session


class LoopState(Enum):
    """State of the game loop."""
    NOT_STARTED = "not_started"
    RUNNING_BOTS = "running_bots"
    WAITING_HUMAN_ACTION = "waiting_human_action"
    ROUND_LIMIT = "round_limit"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of driving the battle forward.

    Contains what happened since the last human input and
    the view the human should be shown next.
    """
    success: bool
    loop_state: LoopState

    # Filtered view for the human side (None in bot-only battles)
    view: SideView | None = None

    # Bot decisions taken, in order
    bot_actions: list[str] = field(default_factory=list)

    # Changes reported by the reducer
    changes: list[str] = field(default_factory=list)

    # Errors
    errors: list[str] = field(default_factory=list)
    error_code: ErrorCode | None = None

    # Game over info
    winner: str | None = None


class GameLoop:
    """
    The main battle loop driver.

    Usage:
        loop = GameLoop(session)
        result = loop.start()

        while result.loop_state == LoopState.WAITING_HUMAN_ACTION:
            result = loop.play_card(card_instance_id, commander_id)
            # or: result = loop.pass_()

    sleep, when given, is called with each bot's thinking delay.
    """

    max_steps = 10_000  # Safety limit per drive

    def __init__(self, session: Session, sleep: Callable[[float], Any] | None = None):
        self.session = session
        self.sleep = sleep
        self.state = LoopState.NOT_STARTED

    @property
    def battle(self) -> BattleState:
        return self.session.battle

    def start(self) -> TurnResult:
        """Begin the battle and run bots until the human must act."""
        from .manager import SessionState

        if self.session.state != SessionState.CREATED:
            return self._error("Battle already started", ErrorCode.ILLEGAL_ACTION)
        self.session.state = SessionState.ACTIVE
        return self._drive()

    def submit(self, action: Action) -> TurnResult:
        """
        Apply a human action, then run bots until the human must act again.

        Plays and passes are only accepted from the side whose turn it is.
        Nothing is accepted once the round limit has stopped the battle.
        """
        if self.battle.is_finished:
            return self._error("Battle is finished", ErrorCode.INVALID_TRANSITION)
        if self.state == LoopState.ROUND_LIMIT or self._round_limit_reached():
            return self._error("Battle stopped at its round limit", ErrorCode.INVALID_TRANSITION)

        human = self.session.human_side_id
        if action.side_id != human:
            return self._error(f"Side {action.side_id} is not controlled by the player",
                               ErrorCode.UNKNOWN_SIDE)

        if action.action_type in (ActionType.PLAY_CARD, ActionType.PASS):
            if self.session.current_actor != human:
                return self._error("Not your turn", ErrorCode.ILLEGAL_ACTION)

        result = self._apply(action)
        if not result.success:
            return self._error(result.error or "Action rejected", result.error_code)

        if action.action_type != ActionType.ADVANCE_PHASE:
            self.session.current_actor = self._next_actor(human)
        elif self.battle.phase == BattlePhase.ACTIONS:
            self.session.current_actor = self.battle.initiative_side
        return self._drive(changes=list(result.state_changes))

    def play_card(self, card_instance_id: str, commander_id: str) -> TurnResult:
        return self.submit(Action.play_card(
            self.session.human_side_id, card_instance_id, commander_id,
            expected_sequence=self.battle.sequence,
        ))

    def pass_(self) -> TurnResult:
        return self.submit(Action.pass_(
            self.session.human_side_id, expected_sequence=self.battle.sequence,
        ))

    def run_to_completion(self) -> TurnResult:
        """Drive a bot-only battle until it finishes or hits the round limit."""
        if self.session.human_side_id is not None:
            return self._error("Battle has a human side", ErrorCode.ILLEGAL_ACTION)
        return self.start()

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------

    def _drive(self, changes: list[str] | None = None) -> TurnResult:
        """Advance phases and run bot turns until someone outside the loop must act."""
        self.state = LoopState.RUNNING_BOTS
        changes = changes or []
        bot_actions: list[str] = []

        for _ in range(self.max_steps):
            battle = self.battle
            if battle.is_finished:
                return self._finish(bot_actions, changes)

            if battle.phase != BattlePhase.ACTIONS:
                if battle.phase == BattlePhase.INITIATIVE and self._round_limit_reached():
                    self.state = LoopState.ROUND_LIMIT
                    logger.info("Battle {} stopped at round limit", battle.battle_id)
                    return self._result(bot_actions, changes)
                changes.extend(self._advance().state_changes)
                if self.battle.phase == BattlePhase.ACTIONS:
                    self.session.current_actor = self.battle.initiative_side
                continue

            actor = self.session.current_actor
            if actor is None or battle.get_side(actor).passed:
                actor = self._next_actor(actor or battle.sides[0].side_id)
            if actor is None:
                # Both sides passed
                changes.extend(self._advance().state_changes)
                continue

            self.session.current_actor = actor
            if not self.session.is_bot(actor):
                self.state = LoopState.WAITING_HUMAN_ACTION
                return self._result(bot_actions, changes)

            bot_actions.append(self._run_bot_turn(actor, changes))
            self.session.current_actor = self._next_actor(actor)

        return self._error("Game loop exceeded its step limit", ErrorCode.ILLEGAL_ACTION)

    def _run_bot_turn(self, side_id: str, changes: list[str]) -> str:
        bot = self.session.bots[side_id]
        deferred = bot.deliberate(observe(self.battle, side_id))
        decision = bot.commit(deferred, self.sleep)
        bot.reset_turn()

        action = Action(
            action_type=decision.action.action_type,
            payload=decision.action.payload,
            expected_sequence=self.battle.sequence,
        )
        result = self._apply(action)
        if not result.success:
            logger.warning("Bot {} action rejected ({}); passing", side_id, result.error)
            result = self._apply(Action.pass_(side_id, expected_sequence=self.battle.sequence))
            if not result.success:
                raise RuntimeError(f"Bot {side_id} could neither act nor pass: {result.error}")
            changes.extend(result.state_changes)
            return f"{side_id}: pass (fallback)"

        changes.extend(result.state_changes)
        return f"{side_id}: {decision.explanation or action.describe()}"

    def _advance(self) -> ActionResult:
        """Advance one phase on behalf of the initiative side."""
        actor = self.battle.initiative_side or self.battle.sides[0].side_id
        result = self._apply(Action.advance_phase(actor, expected_sequence=self.battle.sequence))
        if not result.success:
            raise RuntimeError(f"Loop could not advance from {self.battle.phase.value}: {result.error}")
        return result

    def _apply(self, action: Action) -> ActionResult:
        result = self.session.reducer.apply(self.battle, action)
        if result.success and result.new_state is not None:
            self.session.battle = result.new_state
            self.session.history.append(action)
        return result

    def _next_actor(self, after: str) -> str | None:
        """The side to act after `after`: its opponent unless passed, else itself."""
        opponent = self.battle.opponent_of(after)
        if not opponent.passed:
            return opponent.side_id
        if not self.battle.get_side(after).passed:
            return after
        return None

    def _round_limit_reached(self) -> bool:
        limit = self.session.max_rounds
        return limit is not None and self.battle.round_number > limit

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def _human_view(self) -> SideView | None:
        if self.session.human_side_id is None:
            return None
        return observe(self.battle, self.session.human_side_id)

    def _result(self, bot_actions: list[str], changes: list[str]) -> TurnResult:
        return TurnResult(
            success=True,
            loop_state=self.state,
            view=self._human_view(),
            bot_actions=bot_actions,
            changes=changes,
            winner=self.battle.winner,
        )

    def _finish(self, bot_actions: list[str], changes: list[str]) -> TurnResult:
        from .manager import SessionState

        self.state = LoopState.GAME_OVER
        self.session.state = SessionState.GAME_OVER
        self.session.current_actor = None
        logger.info("Battle {} over, winner: {}", self.battle.battle_id, self.battle.winner)
        return self._result(bot_actions, changes)

    def _error(self, message: str, code: ErrorCode | None) -> TurnResult:
        return TurnResult(
            success=False,
            loop_state=self.state,
            view=self._human_view(),
            errors=[message],
            error_code=code,
            winner=self.battle.winner,
        )
