"""
Observable View - What one side is allowed to see.

A SideView carries the side's own hand, discard and commanders, both
sides' hit points, and only the size of the opponent's hand. Bots and
clients receive views, never the raw BattleState.
"""

from __future__ import annotations
from dataclasses import dataclass

from .cards import CardInstance
from .effect_resolver import GameContext
from .state import BattleState, BattlePhase, Commander, Environment, LogEntry, Side


@dataclass(frozen=True)
class OpponentView:
    """Public information about the other side."""
    side_id: str
    name: str
    hp: int
    hand_size: int
    culture: str | None
    passed: bool
    in_play_count: int


@dataclass(frozen=True)
class SideView:
    """A per-side filtered snapshot of the battle."""
    battle_id: str
    side_id: str
    name: str
    round_number: int
    phase: BattlePhase
    hp: int
    hand: tuple[CardInstance, ...]
    discard: tuple[CardInstance, ...]
    commanders: tuple[Commander, ...]
    blocked_card_types: frozenset[str]
    passed: bool
    has_initiative: bool
    opponent: OpponentView
    environment: Environment
    context: GameContext
    log: tuple[LogEntry, ...]
    sequence: int
    winner: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.phase == BattlePhase.FINISHED

    def as_side(self) -> Side:
        """Rebuild a Side holding only what this view shows (for rule checks)."""
        return Side(
            side_id=self.side_id,
            name=self.name,
            hp=self.hp,
            hand=self.hand,
            discard=self.discard,
            commanders=self.commanders,
            passed=self.passed,
            blocked_card_types=self.blocked_card_types,
        )


def observe(state: BattleState, side_id: str) -> SideView:
    """Build the view a side is entitled to. Raises KeyError for unknown sides."""
    side = state.get_side(side_id)
    if side is None:
        raise KeyError(side_id)
    opponent = state.opponent_of(side_id)

    return SideView(
        battle_id=state.battle_id,
        side_id=side.side_id,
        name=side.name,
        round_number=state.round_number,
        phase=state.phase,
        hp=side.hp,
        hand=side.hand,
        discard=side.discard,
        commanders=side.commanders,
        blocked_card_types=side.blocked_card_types,
        passed=side.passed,
        has_initiative=state.initiative_side == side_id,
        opponent=OpponentView(
            side_id=opponent.side_id,
            name=opponent.name,
            hp=opponent.hp,
            hand_size=len(opponent.hand),
            culture=opponent.culture,
            passed=opponent.passed,
            in_play_count=len(opponent.in_play),
        ),
        environment=state.environment,
        context=GameContext.for_side(state, side_id),
        log=state.log,
        sequence=state.sequence,
        winner=state.winner,
    )
