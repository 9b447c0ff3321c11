"""
Action System - Actions, payloads, and results.

Actions represent everything a side can submit to a battle:
1. play_card - commit a card from hand, paid by one commander
2. pass - declare done for the current actions phase
3. advance_phase - move the battle to the next phase

All state changes flow through actions. Rule violations come back
as failed ActionResults, never as exceptions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionType(Enum):
    """Types of actions in the system."""
    PLAY_CARD = "play_card"
    PASS = "pass"
    ADVANCE_PHASE = "advance_phase"


class ErrorCode(Enum):
    """Why an action was rejected. Every rejection leaves state untouched."""
    ILLEGAL_ACTION = "ILLEGAL_ACTION"  # Wrong phase, already passed, blocked card type
    INSUFFICIENT_COMMAND = "INSUFFICIENT_COMMAND"  # Cost exceeds commander's free pool
    UNKNOWN_CARD = "UNKNOWN_CARD"  # Card not in the side's hand
    UNKNOWN_COMMANDER = "UNKNOWN_COMMANDER"  # Commander not on the side's roster
    INVALID_TRANSITION = "INVALID_TRANSITION"  # Phase skip, regression, or after finish
    UNKNOWN_SIDE = "UNKNOWN_SIDE"
    STALE_ACTION = "STALE_ACTION"  # Out-of-order or duplicate submission


@dataclass(frozen=True)
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    This is a generic container; validation happens in the reducer.
    """
    side_id: str
    card_instance_id: str | None = None
    commander_id: str | None = None
    target_phase: str | None = None  # advance_phase only; defaults to the next phase


@dataclass(frozen=True)
class Action:
    """
    A complete action to be applied to the battle state.

    Actions are:
    - Attributable to exactly one side
    - Validated before application
    - Applied atomically by the reducer

    expected_sequence, when set, must equal the state's sequence
    counter; an authority uses it to reject replays and reordering.
    """
    action_type: ActionType
    payload: ActionPayload
    expected_sequence: int | None = None
    action_id: str | None = None

    @property
    def side_id(self) -> str:
        return self.payload.side_id

    @classmethod
    def play_card(
        cls,
        side_id: str,
        card_instance_id: str,
        commander_id: str,
        expected_sequence: int | None = None,
    ) -> Action:
        """Factory for play_card action."""
        return cls(
            action_type=ActionType.PLAY_CARD,
            payload=ActionPayload(
                side_id=side_id,
                card_instance_id=card_instance_id,
                commander_id=commander_id,
            ),
            expected_sequence=expected_sequence,
        )

    @classmethod
    def pass_(cls, side_id: str, expected_sequence: int | None = None) -> Action:
        """Factory for pass action."""
        return cls(
            action_type=ActionType.PASS,
            payload=ActionPayload(side_id=side_id),
            expected_sequence=expected_sequence,
        )

    @classmethod
    def advance_phase(
        cls,
        side_id: str,
        target_phase: str | None = None,
        expected_sequence: int | None = None,
    ) -> Action:
        """Factory for advance_phase action."""
        return cls(
            action_type=ActionType.ADVANCE_PHASE,
            payload=ActionPayload(side_id=side_id, target_phase=target_phase),
            expected_sequence=expected_sequence,
        )

    def describe(self) -> str:
        if self.action_type == ActionType.PLAY_CARD:
            return (
                f"{self.side_id} plays {self.payload.card_instance_id} "
                f"with {self.payload.commander_id}"
            )
        return f"{self.side_id} {self.action_type.value}"


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Error and error code (if failed)
    - Human-readable changes (for logs/UI)
    """
    success: bool
    new_state: Any | None = None  # BattleState
    error: str | None = None
    error_code: ErrorCode | None = None

    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
        )
