"""
Action Generator - Enumerates the legal actions for one side.

Used by:
1. Bots to enumerate possible plays
2. Clients to show which card/commander pairs are available
3. Tests, to check the reducer accepts everything listed here

Every generated play_card action names a card in hand and a commander
that passes the Command Economy check, so the reducer accepts it.
"""

from __future__ import annotations

from .action import Action
from .cards import CardInstance
from .command import check_play, DEFAULT_COMMAND_RULES
from .rules import CommandRules
from .state import BattlePhase, BattleState, Side


def legal_plays(
    side: Side,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> list[tuple[CardInstance, str]]:
    """Every (card instance, commander id) pair the side can afford and may play."""
    plays = []
    for instance in side.hand:
        for commander in side.commanders:
            if check_play(side, instance.card, commander, rules=rules) is None:
                plays.append((instance, commander.commander_id))
    return plays


def legal_actions(
    state: BattleState,
    side_id: str,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> list[Action]:
    """
    Generate all legal actions for a side.

    Outside the actions phase only advance_phase is offered; once the
    battle is finished nothing is.
    """
    side = state.get_side(side_id)
    if side is None or state.is_finished:
        return []

    if state.phase != BattlePhase.ACTIONS:
        return [Action.advance_phase(side_id)]

    actions = []
    if not side.passed:
        actions.extend(
            Action.play_card(side_id, instance.instance_id, commander_id)
            for instance, commander_id in legal_plays(side, rules)
        )
        actions.append(Action.pass_(side_id))
    actions.append(Action.advance_phase(side_id))
    return actions
