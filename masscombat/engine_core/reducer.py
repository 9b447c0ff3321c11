"""
Reducer - Applies actions to battle state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state; dice derive from the state
- Validates before applying; rejections leave the state untouched
- Returns ActionResult with success/failure and an ErrorCode
- Checks engine invariants after every applied action
"""

from __future__ import annotations
from dataclasses import dataclass, field

from loguru import logger

from .action import Action, ActionType, ActionResult, ErrorCode
from .combat import RoundReport, resolve_round
from .command import check_play, effective_cost, restore, spend
from .effect_resolver import GameContext, resolve
from .phases import parse_phase, validate_advance
from .rng import DiceSource, SeededDice
from .rules import BattleRules, DEFAULT_RULES
from .state import BattlePhase, BattleState, PlayedCard, Side, check_invariants


_PLAY_REJECTIONS = {
    ErrorCode.ILLEGAL_ACTION: "{commander} may not play {card}",
    ErrorCode.INSUFFICIENT_COMMAND: "{commander} lacks command for {card} (cost {cost}, free {free})",
}


@dataclass
class Reducer:
    """
    Reducer applies actions to battle state.

    Stateless - all battle data is in BattleState.
    Rules and the dice source are injected.
    """
    rules: BattleRules = DEFAULT_RULES
    dice: DiceSource = field(default_factory=SeededDice)

    def apply(self, state: BattleState, action: Action) -> ActionResult:
        """
        Apply an action to the battle state.

        Returns ActionResult with new state or error.
        """
        if action.expected_sequence is not None and action.expected_sequence != state.sequence:
            return self._reject(
                action,
                f"Expected sequence {action.expected_sequence}, battle is at {state.sequence}",
                ErrorCode.STALE_ACTION,
            )

        if state.get_side(action.side_id) is None:
            return self._reject(action, f"Side {action.side_id} not in battle", ErrorCode.UNKNOWN_SIDE)

        handler = self._get_handler(action.action_type)
        result = handler(state, action)
        if not result.success:
            logger.warning("Rejected {}: {}", action.describe(), result.error)
            return result

        new_state = result.new_state._copy_with(sequence=state.sequence + 1)
        check_invariants(new_state, self.rules.combat.max_hp, previous=state)
        result.new_state = new_state
        return result

    def _reject(self, action: Action, message: str, code: ErrorCode) -> ActionResult:
        logger.warning("Rejected {}: {}", action.describe(), message)
        return ActionResult.failure(message, code)

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.PLAY_CARD: self._handle_play_card,
            ActionType.PASS: self._handle_pass,
            ActionType.ADVANCE_PHASE: self._handle_advance_phase,
        }
        return handlers[action_type]

    def _log(self, state: BattleState, actor: str, action: str, details: str = "") -> BattleState:
        return state.with_log(actor, action, details, limit=self.rules.log_limit)

    # ------------------------------------------------------------------
    # play_card / pass
    # ------------------------------------------------------------------

    def _handle_play_card(self, state: BattleState, action: Action) -> ActionResult:
        """Handle play_card: pay the cost and commit the card to this round."""
        if state.phase != BattlePhase.ACTIONS:
            return ActionResult.failure(
                f"Cards can only be played in the actions phase (now {state.phase.value})",
                ErrorCode.ILLEGAL_ACTION,
            )

        side = state.get_side(action.side_id)
        if side.passed:
            return ActionResult.failure(f"{side.name} has already passed", ErrorCode.ILLEGAL_ACTION)

        instance = side.find_in_hand(action.payload.card_instance_id or "")
        if instance is None:
            return ActionResult.failure(
                f"Card {action.payload.card_instance_id} not in {side.name}'s hand",
                ErrorCode.UNKNOWN_CARD,
            )

        commander = side.get_commander(action.payload.commander_id or "")
        if commander is None:
            return ActionResult.failure(
                f"Commander {action.payload.commander_id} not on {side.name}'s roster",
                ErrorCode.UNKNOWN_COMMANDER,
            )

        card = instance.card
        cost = effective_cost(card, commander, self.rules.command)
        rejection = check_play(side, card, commander, rules=self.rules.command)
        if rejection is not None:
            if card.unit_type is not None and card.unit_type.value in side.blocked_card_types:
                message = f"{card.unit_type.value} cards are blocked this round"
            else:
                message = _PLAY_REJECTIONS[rejection].format(
                    commander=commander.name, card=card.name,
                    cost=cost, free=commander.command_free,
                )
            return ActionResult.failure(message, rejection)

        side = spend(side, commander.commander_id, cost)
        side = side._copy_with(
            hand=tuple(c for c in side.hand if c.instance_id != instance.instance_id),
            in_play=side.in_play + (PlayedCard(instance, commander.commander_id, cost),),
        )
        new_state = state.with_side(side)

        changes = [f"{side.name} plays {card.name} with {commander.name} (cost {cost})"]

        blocked = resolve(card, GameContext.for_side(state, side.side_id)).blocked_card_types
        if blocked:
            opponent = new_state.opponent_of(side.side_id)
            opponent = opponent._copy_with(
                blocked_card_types=opponent.blocked_card_types | blocked,
            )
            new_state = new_state.with_side(opponent)
            changes.append(f"{opponent.name} cannot play {', '.join(sorted(blocked))} this round")

        new_state = self._log(new_state, side.side_id, "play_card", changes[0])
        logger.debug(changes[0])
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_pass(self, state: BattleState, action: Action) -> ActionResult:
        """Handle pass: the side is done playing cards this round."""
        if state.phase != BattlePhase.ACTIONS:
            return ActionResult.failure(
                f"Passing is only allowed in the actions phase (now {state.phase.value})",
                ErrorCode.ILLEGAL_ACTION,
            )

        side = state.get_side(action.side_id)
        if side.passed:
            return ActionResult.failure(f"{side.name} has already passed", ErrorCode.ILLEGAL_ACTION)

        new_state = state.with_side(side._copy_with(passed=True))
        new_state = self._log(new_state, side.side_id, "pass")
        return ActionResult.success_with_state(new_state, changes=[f"{side.name} passes"])

    # ------------------------------------------------------------------
    # advance_phase
    # ------------------------------------------------------------------

    def _handle_advance_phase(self, state: BattleState, action: Action) -> ActionResult:
        """Handle advance_phase: move to the next phase and run its entry work."""
        target = None
        if action.payload.target_phase is not None:
            target = parse_phase(action.payload.target_phase)
            if target is None:
                return ActionResult.failure(
                    f"Unknown phase {action.payload.target_phase}",
                    ErrorCode.INVALID_TRANSITION,
                )

        error = validate_advance(state, target)
        if error:
            return ActionResult.failure(error, ErrorCode.INVALID_TRANSITION)

        current = state.phase
        if current == BattlePhase.INITIATIVE:
            new_state = self._enter_actions(state)
        elif current == BattlePhase.ACTIONS:
            new_state = self._enter_resolve(state)
        elif current == BattlePhase.RESOLVE:
            new_state = self._enter_end_round(state)
        elif current == BattlePhase.END_ROUND:
            new_state = self._start_next_round(state)
        elif current == BattlePhase.PRE_COMBAT:
            new_state = state._copy_with(phase=BattlePhase.DEPLOYMENT)
        else:
            new_state = state._copy_with(phase=BattlePhase.INITIATIVE)

        change = f"{current.value} -> {new_state.phase.value}"
        new_state = self._log(new_state, action.side_id, "advance_phase", change)
        logger.debug("Battle {}: {}", state.battle_id, change)
        return ActionResult.success_with_state(new_state, changes=[change])

    def _enter_actions(self, state: BattleState) -> BattleState:
        initiative = state.initiative_side or state.sides[0].side_id
        return state._copy_with(phase=BattlePhase.ACTIONS, initiative_side=initiative)

    def _enter_resolve(self, state: BattleState) -> BattleState:
        return resolve_round(state._copy_with(phase=BattlePhase.RESOLVE), self.rules, self.dice)

    def _enter_end_round(self, state: BattleState) -> BattleState:
        """Clear played cards to discard (or hand) and draw granted cards."""
        report = state.last_report
        if not isinstance(report, RoundReport) or report.round_number != state.round_number:
            report = RoundReport(round_number=state.round_number)

        new_state = state._copy_with(phase=BattlePhase.END_ROUND)
        for side in state.sides:
            new_state = new_state.with_side(self._clear_side(side, report))
        return new_state

    def _clear_side(self, side: Side, report: RoundReport) -> Side:
        returning = set(report.returning) - set(report.cancelled)
        back = tuple(p.instance for p in side.in_play if p.instance.instance_id in returning)
        spent = tuple(p.instance for p in side.in_play if p.instance.instance_id not in returning)

        draws = min(report.net_for(side.side_id).draw_cards, len(side.draw_pile))
        return side._copy_with(
            hand=side.hand + back + side.draw_pile[:draws],
            draw_pile=side.draw_pile[draws:],
            discard=side.discard + spent,
            in_play=(),
        )

    def _start_next_round(self, state: BattleState) -> BattleState:
        """end_round -> initiative: the only place the round counter moves."""
        sides = tuple(
            restore(s, self.rules.command)._copy_with(
                passed=False,
                blocked_card_types=frozenset(),
                round_damage_dealt=0,
            )
            for s in state.sides
        )
        new_state = state._copy_with(
            sides=sides,
            phase=BattlePhase.INITIATIVE,
            round_number=state.round_number + 1,
        )
        if state.initiative_side is not None:
            new_state = new_state._copy_with(
                initiative_side=state.opponent_of(state.initiative_side).side_id,
            )
        return new_state


def apply_action(
    state: BattleState,
    action: Action,
    rules: BattleRules = DEFAULT_RULES,
    dice: DiceSource | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rules=rules, dice=dice or SeededDice())
    return reducer.apply(state, action)
