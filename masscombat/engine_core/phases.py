"""
Battle State Machine - Phase order and transition rules.

    pre_combat -> deployment -> initiative -> actions -> resolve -> end_round
                                    ^                                   |
                                    +-----------------------------------+

finished is terminal and can be entered from any phase as soon as a
side's hit points reach 0. Phases only move through an explicit
advance_phase action.
"""

from __future__ import annotations

from .state import BattlePhase, BattleState


NEXT_PHASE: dict[BattlePhase, BattlePhase] = {
    BattlePhase.PRE_COMBAT: BattlePhase.DEPLOYMENT,
    BattlePhase.DEPLOYMENT: BattlePhase.INITIATIVE,
    BattlePhase.INITIATIVE: BattlePhase.ACTIONS,
    BattlePhase.ACTIONS: BattlePhase.RESOLVE,
    BattlePhase.RESOLVE: BattlePhase.END_ROUND,
    BattlePhase.END_ROUND: BattlePhase.INITIATIVE,
}


def next_phase(phase: BattlePhase) -> BattlePhase | None:
    """The only phase reachable by advancing, or None once finished."""
    return NEXT_PHASE.get(phase)


def parse_phase(name: str | BattlePhase | None) -> BattlePhase | None:
    if name is None or isinstance(name, BattlePhase):
        return name
    try:
        return BattlePhase(name)
    except ValueError:
        return None


def validate_advance(state: BattleState, target: BattlePhase | None = None) -> str | None:
    """
    Check an advance request.

    Returns an error message when the advance would skip a phase,
    regress, or happen after the battle finished; None when allowed.
    """
    if state.is_finished:
        return "Battle is finished - no further phase changes"

    expected = next_phase(state.phase)
    if expected is None:
        return f"No phase follows {state.phase.value}"
    if target is not None and target != expected:
        return (
            f"Cannot advance from {state.phase.value} to {target.value}; "
            f"next phase is {expected.value}"
        )
    return None


def check_termination(state: BattleState, log_limit: int | None = None) -> BattleState:
    """
    Finish the battle if a side has been reduced to 0 hit points.

    Called after every hit point mutation. The surviving side wins.
    """
    if state.is_finished:
        return state

    defeated = [s for s in state.sides if s.hp <= 0]
    if not defeated:
        return state

    survivors = [s for s in state.sides if s.hp > 0]
    winner = survivors[0].side_id if len(survivors) == 1 else None
    new_state = state._copy_with(phase=BattlePhase.FINISHED, winner=winner)
    detail = f"{defeated[0].name} is routed"
    return new_state.with_log("system", "battle finished", detail, limit=log_limit)
