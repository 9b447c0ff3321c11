"""
Tests for the reducer.

Tests:
- Playing a card spends command and commits the card
- Rejections carry an error code and leave the state untouched
- Blocked unit types
- Sequence numbers reject stale and duplicate submissions
- Replaying an action log reproduces the battle
- Random walks over legal actions never break the invariants
"""

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from ..engine_core.action import Action, ErrorCode
from ..engine_core.action_generator import legal_actions, legal_plays
from ..engine_core.cards import UnitType
from ..engine_core.reducer import Reducer, apply_action
from ..engine_core.state import (
    BattlePhase,
    Environment,
    EngineInvariantViolation,
    check_invariants,
)


INF = UnitType.INFANTRY


class TestPlayCard:
    """Tests for a successful play."""

    def test_play_spends_command(self, make_battle, make_side, make_card):
        """An urban 3/2 infantry card played by the infantry commander."""
        card = make_card("city_guard", atk=3, cmd=2, unit_type=INF, effect="bonus_on_terrain_urban")
        state = make_battle(
            player=make_side("player", hand=(card,)),
            environment=Environment(terrain="Urbano"),
        )

        result = Reducer().apply(state, Action.play_card("player", "player-city_guard-0", "player-inf"))

        assert result.success
        player = result.new_state.get_side("player")
        assert player.get_commander("player-inf").command_free == 0
        assert player.hand == ()
        assert [p.instance.instance_id for p in player.in_play] == ["player-city_guard-0"]
        assert player.in_play[0].cost_paid == 2
        assert result.new_state.sequence == state.sequence + 1
        assert result.state_changes

    def test_play_is_logged(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(),)))
        result = Reducer().apply(state, Action.play_card("player", "player-test_card-0", "player-gen"))

        assert result.new_state.log[-1].action == "play_card"
        assert result.new_state.log[-1].actor == "player"

    def test_apply_action_helper(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(),)))
        result = apply_action(state, Action.play_card("player", "player-test_card-0", "player-gen"))
        assert result.success


class TestRejections:
    """Rejected actions leave the state as it was."""

    def test_insufficient_command(self, make_battle, make_side, make_card):
        card = make_card("heavy", atk=3, cmd=3, unit_type=INF)
        state = make_battle(player=make_side("player", hand=(card,)))
        before = state.clone()

        result = Reducer().apply(state, Action.play_card("player", "player-heavy-0", "player-inf"))

        assert not result.success
        assert result.error_code == ErrorCode.INSUFFICIENT_COMMAND
        assert result.new_state is None
        assert state == before

    def test_unknown_card(self, make_battle):
        result = Reducer().apply(make_battle(), Action.play_card("player", "nope", "player-gen"))
        assert result.error_code == ErrorCode.UNKNOWN_CARD

    def test_card_in_opponent_hand_is_unknown(self, make_battle, make_side, make_card):
        state = make_battle(bot=make_side("bot", hand=(make_card(),)))
        result = Reducer().apply(state, Action.play_card("player", "bot-test_card-0", "player-gen"))
        assert result.error_code == ErrorCode.UNKNOWN_CARD

    def test_unknown_commander(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(),)))
        result = Reducer().apply(state, Action.play_card("player", "player-test_card-0", "bot-gen"))
        assert result.error_code == ErrorCode.UNKNOWN_COMMANDER

    def test_unknown_side(self, make_battle):
        result = Reducer().apply(make_battle(), Action.pass_("ghost"))
        assert result.error_code == ErrorCode.UNKNOWN_SIDE

    def test_wrong_specialization(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(unit_type=INF),)))
        result = Reducer().apply(state, Action.play_card("player", "player-test_card-0", "player-cav"))
        assert result.error_code == ErrorCode.ILLEGAL_ACTION

    def test_play_after_pass(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(),)))
        reducer = Reducer()
        state = reducer.apply(state, Action.pass_("player")).new_state

        result = reducer.apply(state, Action.play_card("player", "player-test_card-0", "player-gen"))
        assert result.error_code == ErrorCode.ILLEGAL_ACTION

    def test_double_pass(self, make_battle):
        reducer = Reducer()
        state = reducer.apply(make_battle(), Action.pass_("player")).new_state
        assert reducer.apply(state, Action.pass_("player")).error_code == ErrorCode.ILLEGAL_ACTION


class TestBlockedUnitTypes:
    """Tests for block_unit_type_infantry."""

    def test_infantry_blocked_after_raid(self, make_battle, make_side, make_card):
        raiders = make_card("marine_raiders", atk=1, cmd=1, unit_type=INF, effect="block_unit_type_infantry")
        spears = make_card("spear_line", atk=1, dfn=1, cmd=1, unit_type=INF)
        state = make_battle(
            player=make_side("player", hand=(raiders,)),
            bot=make_side("bot", hand=(spears,)),
        )
        reducer = Reducer()

        state = reducer.apply(state, Action.play_card("player", "player-marine_raiders-0", "player-inf")).new_state
        assert state.get_side("bot").blocked_card_types == frozenset({INF.value})

        result = reducer.apply(state, Action.play_card("bot", "bot-spear_line-0", "bot-inf"))
        assert result.error_code == ErrorCode.ILLEGAL_ACTION
        assert "blocked" in result.error

    def test_block_clears_next_round(self, make_battle, make_side):
        state = make_battle(bot=make_side("bot", blocked_card_types=frozenset({INF.value})))
        reducer = Reducer()
        for _ in range(3):
            state = reducer.apply(state, Action.advance_phase("player")).new_state

        assert state.phase == BattlePhase.INITIATIVE
        assert state.get_side("bot").blocked_card_types == frozenset()


class TestSequencing:
    """Tests for expected_sequence checks."""

    def test_matching_sequence_is_accepted(self, make_battle):
        state = make_battle()
        result = Reducer().apply(state, Action.pass_("player", expected_sequence=state.sequence))
        assert result.success

    def test_stale_sequence_is_rejected(self, make_battle):
        state = make_battle()
        result = Reducer().apply(state, Action.pass_("player", expected_sequence=state.sequence + 3))

        assert result.error_code == ErrorCode.STALE_ACTION
        assert result.new_state is None

    def test_duplicate_submission_is_rejected(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card(), make_card("other"))))
        reducer = Reducer()
        action = Action.play_card("player", "player-test_card-0", "player-gen", expected_sequence=0)

        first = reducer.apply(state, action)
        second = reducer.apply(first.new_state, action)

        assert first.success
        assert second.error_code == ErrorCode.STALE_ACTION

    def test_unsequenced_actions_skip_the_check(self, make_battle):
        state = make_battle()._copy_with(sequence=12)
        assert Reducer().apply(state, Action.pass_("player")).success


class TestInvariants:
    """Tests for the invariant checks run after every action."""

    def test_hp_out_of_range(self, make_battle, make_side):
        with pytest.raises(EngineInvariantViolation):
            check_invariants(make_battle(player=make_side("player", hp=101)))

    def test_zero_hp_must_finish(self, make_battle, make_side):
        with pytest.raises(EngineInvariantViolation):
            check_invariants(make_battle(player=make_side("player", hp=0)))

    def test_one_general_per_side(self, make_battle, make_side):
        side = make_side("player")
        side = side._copy_with(commanders=side.commanders[:2])
        with pytest.raises(EngineInvariantViolation):
            check_invariants(make_battle(player=side))

    def test_valid_state_passes(self, make_battle):
        check_invariants(make_battle())

    def test_round_never_decreases(self, make_battle):
        earlier = make_battle(phase=BattlePhase.END_ROUND)._copy_with(round_number=3)
        later = make_battle(phase=BattlePhase.INITIATIVE)._copy_with(round_number=2)

        with pytest.raises(EngineInvariantViolation):
            check_invariants(later, previous=earlier)

    def test_round_moves_only_when_leaving_end_round(self, make_battle):
        before = make_battle(phase=BattlePhase.ACTIONS)
        after = make_battle(phase=BattlePhase.ACTIONS)._copy_with(round_number=2)

        with pytest.raises(EngineInvariantViolation):
            check_invariants(after, previous=before)

    def test_round_moves_by_one(self, make_battle):
        before = make_battle(phase=BattlePhase.END_ROUND)
        after = make_battle(phase=BattlePhase.INITIATIVE)._copy_with(round_number=3)

        with pytest.raises(EngineInvariantViolation):
            check_invariants(after, previous=before)

    def test_end_round_advance_passes(self, make_battle):
        state = make_battle(phase=BattlePhase.END_ROUND)

        result = Reducer().apply(state, Action.advance_phase("player"))

        assert result.success, result.error
        assert result.new_state.round_number == 2
        check_invariants(result.new_state, previous=state)


def play_out(state, reducer, choices):
    """Apply one legal action per choice, alternating sides, until finished."""
    applied = []
    for i, choice in enumerate(choices):
        if state.is_finished:
            break
        side_id = state.side_ids[i % 2]
        actions = legal_actions(state, side_id)
        action = actions[choice % len(actions)]
        result = reducer.apply(state, action)
        assert result.success, result.error
        check_invariants(result.new_state)
        state = result.new_state
        applied.append(action)
    return state, applied


class TestReplay:
    """Replaying the same actions reproduces the same battle."""

    def test_replay_is_deterministic(self, new_battle):
        choices = list(range(60))
        final, applied = play_out(new_battle, Reducer(), choices)

        replayed = new_battle
        for action in applied:
            replayed = Reducer().apply(replayed, action).new_state

        assert replayed == final
        assert replayed.log == final.log

    @settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(st.lists(st.integers(min_value=0, max_value=50), max_size=80))
    def test_legal_actions_are_always_accepted(self, new_battle, choices):
        state, _ = play_out(new_battle, Reducer(), choices)
        assert state.round_number >= 1

    def test_every_legal_play_is_accepted(self, actions_battle):
        side = actions_battle.get_side("player")
        plays = legal_plays(side)
        assert plays

        for instance, commander_id in plays:
            result = Reducer().apply(
                actions_battle, Action.play_card("player", instance.instance_id, commander_id)
            )
            assert result.success, result.error
