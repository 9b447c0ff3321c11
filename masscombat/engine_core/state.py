"""
Battle State - Immutable containers for a battle in progress.

Design principles:
- Immutable: all mutations return new state (frozen dataclasses, tuples)
- Replayable: the same state and action always produce the same result
- Two-sided: exactly two Sides, each created whole at setup
- Observable: per-side filtered views are built in view.py
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any
from copy import deepcopy

from .cards import CardInstance, UnitType


class EngineInvariantViolation(AssertionError):
    """
    Raised when the engine reaches a state no rule can produce.

    Indicates a bug upstream. Never caught inside the engine.
    """


class BattlePhase(Enum):
    """Battle phases, in the order they are entered."""
    PRE_COMBAT = "pre_combat"
    DEPLOYMENT = "deployment"
    INITIATIVE = "initiative"
    ACTIONS = "actions"
    RESOLVE = "resolve"
    END_ROUND = "end_round"
    FINISHED = "finished"


@dataclass(frozen=True)
class Environment:
    """Battlefield conditions, supplied once per battle (or per round)."""
    terrain: str | None = None
    secondary_terrain: tuple[str, ...] = ()
    climate: str | None = None
    season: str | None = None


@dataclass(frozen=True)
class Commander:
    """
    A commander on a side's roster.

    For the general, command_base/command_free are the side's shared
    general pool rather than a personal one.
    """
    commander_id: str
    name: str
    specialization: UnitType | None = None
    command_base: int = 1
    command_free: int = 1
    strategy: int = 0
    guard: int = 0
    is_general: bool = False

    @property
    def is_tapped(self) -> bool:
        """A commander that has spent command this round."""
        return self.command_free < self.command_base

    def with_command_free(self, value: int) -> Commander:
        return replace(self, command_free=value)


@dataclass(frozen=True)
class CommandPool:
    """Read-only view of a command pool (used for the general's pool)."""
    base: int
    free: int


@dataclass(frozen=True)
class PlayedCard:
    """A card committed to this round's resolution window."""
    instance: CardInstance
    commander_id: str
    cost_paid: int


@dataclass(frozen=True)
class Side:
    """
    One of the two combatants.

    Hand order is irrelevant to the rules but kept stable for UIs.
    """
    side_id: str
    name: str
    is_bot: bool = False
    culture: str | None = None
    hp: int = 10

    hand: tuple[CardInstance, ...] = ()
    draw_pile: tuple[CardInstance, ...] = ()
    discard: tuple[CardInstance, ...] = ()
    in_play: tuple[PlayedCard, ...] = ()

    commanders: tuple[Commander, ...] = ()

    # Per-round bookkeeping
    passed: bool = False
    blocked_card_types: frozenset[str] = frozenset()  # Imposed by the enemy
    round_damage_dealt: int = 0

    formation: str | None = None

    def get_commander(self, commander_id: str) -> Commander | None:
        """Get commander by ID."""
        for c in self.commanders:
            if c.commander_id == commander_id:
                return c
        return None

    def find_in_hand(self, instance_id: str) -> CardInstance | None:
        for card in self.hand:
            if card.instance_id == instance_id:
                return card
        return None

    @property
    def general(self) -> Commander | None:
        for c in self.commanders:
            if c.is_general:
                return c
        return None

    @property
    def general_pool(self) -> CommandPool:
        general = self.general
        if general is None:
            return CommandPool(base=0, free=0)
        return CommandPool(base=general.command_base, free=general.command_free)

    def with_commander(self, commander: Commander) -> Side:
        """Return new side with the commander replaced."""
        new_commanders = tuple(
            commander if c.commander_id == commander.commander_id else c
            for c in self.commanders
        )
        return self._copy_with(commanders=new_commanders)

    def _copy_with(self, **kwargs) -> Side:
        return replace(self, **kwargs)


@dataclass(frozen=True)
class LogEntry:
    """One human-readable battle log line."""
    actor: str  # side_id or "system"
    action: str
    details: str = ""
    phase: str = ""
    round_number: int = 0
    sequence: int = 0

    def __str__(self) -> str:
        text = f"[R{self.round_number} {self.phase}] {self.actor}: {self.action}"
        return f"{text} ({self.details})" if self.details else text


@dataclass(frozen=True)
class BattleState:
    """
    Complete battle state at a point in time.

    This is the canonical state the engine operates on.
    All state changes go through the reducer.
    """
    battle_id: str
    sides: tuple[Side, Side]

    phase: BattlePhase = BattlePhase.PRE_COMBAT
    round_number: int = 1
    initiative_side: str | None = None
    environment: Environment = field(default_factory=Environment)
    winner: str | None = None

    # Rolling battle log
    log: tuple[LogEntry, ...] = ()

    # Number of actions applied so far (for ordering/duplicate checks)
    sequence: int = 0

    # Seed from which every dice roll is derived
    seed: int = 0

    # Outcome of the most recent resolve phase (combat.RoundReport)
    last_report: Any | None = None

    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_finished(self) -> bool:
        return self.phase == BattlePhase.FINISHED

    @property
    def side_ids(self) -> tuple[str, str]:
        return (self.sides[0].side_id, self.sides[1].side_id)

    def get_side(self, side_id: str) -> Side | None:
        """Get side by ID."""
        for s in self.sides:
            if s.side_id == side_id:
                return s
        return None

    def opponent_of(self, side_id: str) -> Side:
        """Get the other side."""
        first, second = self.sides
        if first.side_id == side_id:
            return second
        if second.side_id == side_id:
            return first
        raise KeyError(side_id)

    def with_side(self, side: Side) -> BattleState:
        """Return new state with updated side."""
        new_sides = tuple(
            side if s.side_id == side.side_id else s
            for s in self.sides
        )
        return self._copy_with(sides=new_sides)

    def with_log(
        self,
        actor: str,
        action: str,
        details: str = "",
        limit: int | None = None,
    ) -> BattleState:
        """Return new state with a log entry appended (oldest dropped past limit)."""
        entry = LogEntry(
            actor=actor,
            action=action,
            details=details,
            phase=self.phase.value,
            round_number=self.round_number,
            sequence=self.sequence,
        )
        new_log = self.log + (entry,)
        if limit is not None and len(new_log) > limit:
            new_log = new_log[-limit:]
        return self._copy_with(log=new_log)

    def _copy_with(self, **kwargs) -> BattleState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)

    def clone(self) -> BattleState:
        """Deep copy the state."""
        return deepcopy(self)


def check_invariants(
    state: BattleState,
    max_hp: int = 100,
    previous: BattleState | None = None,
) -> None:
    """
    Verify the engine invariants.

    With the previous state given, also verify the round counter only
    moves forward by one, and only when end_round is left.

    Raises EngineInvariantViolation on the first broken invariant.
    """
    if len(state.sides) != 2:
        raise EngineInvariantViolation(f"Battle must have 2 sides, has {len(state.sides)}")

    for side in state.sides:
        if not 0 <= side.hp <= max_hp:
            raise EngineInvariantViolation(
                f"{side.side_id}: hp {side.hp} outside [0, {max_hp}]"
            )

        generals = [c for c in side.commanders if c.is_general]
        if len(generals) != 1:
            raise EngineInvariantViolation(
                f"{side.side_id}: expected exactly one general, found {len(generals)}"
            )

        for c in side.commanders:
            if not 0 <= c.command_free <= c.command_base:
                raise EngineInvariantViolation(
                    f"{side.side_id}/{c.commander_id}: command_free {c.command_free} "
                    f"outside [0, {c.command_base}]"
                )

        if side.hp == 0 and state.phase != BattlePhase.FINISHED:
            raise EngineInvariantViolation(
                f"{side.side_id} is at 0 hp but the battle is not finished"
            )

    if state.round_number < 1:
        raise EngineInvariantViolation(f"Invalid round number {state.round_number}")

    if previous is not None and state.round_number != previous.round_number:
        if previous.phase != BattlePhase.END_ROUND or state.round_number != previous.round_number + 1:
            raise EngineInvariantViolation(
                f"Round moved from {previous.round_number} to {state.round_number} "
                f"leaving {previous.phase.value}"
            )
