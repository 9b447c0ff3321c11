"""
Tests for bot policies.

Tests:
- Bots only submit actions the reducer accepts
- Selection rules and pass behavior
- Deferred decisions and turn states
- Pre-battle choices
- Bots see a filtered view
"""

import pytest

from ..bots import (
    BotTurnState,
    CombatBot,
    Difficulty,
    DifficultyProfile,
    FirstLegalPolicy,
    Formation,
    RandomPolicy,
    Selection,
    get_profile,
)
from ..bots.evaluator import CardEvaluator
from ..engine_core.action import ActionType
from ..engine_core.reducer import Reducer
from ..engine_core.state import BattlePhase, Environment
from ..engine_core.view import observe


def calm_profile(selection=Selection.OPTIMAL, difficulty=Difficulty.HARD):
    """A profile with no randomness and no voluntary passing."""
    return DifficultyProfile(
        difficulty=difficulty,
        selection=selection,
        pass_chance=0.0,
        random_factor=0.0,
        bid_multiplier=0.5,
        thinking_delay=(0.0, 0.0),
    )


class TestLegality:
    """Bots never submit an illegal action."""

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_decisions_are_accepted(self, actions_battle, difficulty):
        view = observe(actions_battle, "bot")
        for seed in range(20):
            bot = CombatBot(side_id="bot", difficulty=difficulty, seed=seed)
            decision = bot.decide(view)

            result = Reducer().apply(actions_battle, decision.action)
            assert result.success, result.error

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_pass_when_nothing_is_legal(self, make_battle, make_side, make_card, difficulty):
        state = make_battle(bot=make_side("bot", hand=(make_card("siege_tower", cmd=4),)))
        decision = CombatBot(side_id="bot", difficulty=difficulty, seed=1).decide(observe(state, "bot"))

        assert decision.is_pass
        assert decision.explanation == "No legal play"

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_unaffordable_card_never_chosen(self, make_battle, make_side, make_card, difficulty):
        hand = (make_card("cheap", atk=1, cmd=1), make_card("siege_tower", atk=5, cmd=4))
        state = make_battle(bot=make_side("bot", hand=hand))
        view = observe(state, "bot")

        for seed in range(30):
            decision = CombatBot(side_id="bot", difficulty=difficulty, seed=seed).decide(view)
            assert decision.action.payload.card_instance_id != "bot-siege_tower-1"

    def test_optimal_skips_the_stronger_unaffordable_card(self, make_battle, make_side, make_card):
        hand = (make_card("cheap", atk=1, cmd=1), make_card("siege_tower", atk=5, cmd=4))
        state = make_battle(bot=make_side("bot", hand=hand))

        decision = CombatBot(side_id="bot", seed=1, profile=calm_profile()).decide(observe(state, "bot"))

        assert decision.action.payload.card_instance_id == "bot-cheap-1"

    def test_refuses_outside_actions(self, make_battle):
        view = observe(make_battle(phase=BattlePhase.RESOLVE), "bot")
        with pytest.raises(ValueError):
            CombatBot(side_id="bot", seed=1).decide(view)


class TestSelection:
    """Tests for selection rules."""

    def test_optimal_picks_highest_damage(self, make_battle, make_side, make_card):
        hand = (make_card("skirmish", atk=1, cmd=1), make_card("assault", atk=3, cmd=2))
        state = make_battle(bot=make_side("bot", hand=hand))
        bot = CombatBot(side_id="bot", seed=3, profile=calm_profile())

        decision = bot.decide(observe(state, "bot"))

        assert decision.action.payload.card_instance_id == "bot-assault-1"
        assert decision.action.payload.commander_id == "bot-inf"
        assert decision.best_score == 3 + 3.0

    def test_optimal_counts_context(self, make_battle, make_side, make_card):
        """An urban card outscores a plain one of equal attack in urban terrain."""
        hand = (make_card("plain", atk=1, cmd=1), make_card("watch", atk=1, cmd=1, effect="bonus_on_terrain_urban"))
        state = make_battle(bot=make_side("bot", hand=hand), environment=Environment(terrain="Urbano"))
        bot = CombatBot(side_id="bot", seed=3, profile=calm_profile())

        decision = bot.decide(observe(state, "bot"))
        assert decision.action.payload.card_instance_id == "bot-watch-1"

    def test_always_pass_profile(self, actions_battle):
        profile = calm_profile()
        profile.pass_chance = 1.0
        decision = CombatBot(side_id="bot", seed=1, profile=profile).decide(observe(actions_battle, "bot"))

        assert decision.is_pass
        assert decision.evaluated_actions > 0

    def test_same_seed_same_decision(self, actions_battle):
        view = observe(actions_battle, "bot")
        first = CombatBot(side_id="bot", seed=11).decide(view)
        second = CombatBot(side_id="bot", seed=11).decide(view)
        assert first.action == second.action


class TestDeferredDecisions:
    """Tests for paced delivery."""

    def test_deliberate_matches_decide(self, actions_battle):
        view = observe(actions_battle, "bot")
        decided = CombatBot(side_id="bot", seed=5).decide(view)
        deferred = CombatBot(side_id="bot", seed=5).deliberate(view)

        assert deferred.decision.action == decided.action

    def test_turn_states(self, actions_battle):
        bot = CombatBot(side_id="bot", seed=5)
        assert bot.turn_state == BotTurnState.IDLE

        deferred = bot.deliberate(observe(actions_battle, "bot"))
        assert bot.turn_state == BotTurnState.THINKING

        bot.commit(deferred)
        assert bot.turn_state == BotTurnState.COMMITTED

        bot.reset_turn()
        assert bot.turn_state == BotTurnState.IDLE

    def test_commit_sleeps_for_the_delay(self, actions_battle):
        bot = CombatBot(side_id="bot", difficulty=Difficulty.EASY, seed=5)
        deferred = bot.deliberate(observe(actions_battle, "bot"))
        slept = []

        decision = bot.commit(deferred, sleep=slept.append)

        assert decision is deferred.decision
        assert slept == [deferred.delay_seconds]
        assert 0.5 <= deferred.delay_seconds <= 1.0

    def test_delay_does_not_change_decisions(self, actions_battle):
        """Drawing delays never shifts the decision stream."""
        view = observe(actions_battle, "bot")
        paced = CombatBot(side_id="bot", seed=9)
        plain = CombatBot(side_id="bot", seed=9)
        for _ in range(3):
            paced.thinking_delay()

        assert paced.decide(view).action == plain.decide(view).action

    def test_simple_policies_deliver_immediately(self, actions_battle):
        policy = FirstLegalPolicy()
        deferred = policy.deliberate(observe(actions_battle, "player"))
        slept = []

        policy.commit(deferred, sleep=slept.append)
        assert deferred.delay_seconds == 0.0
        assert slept == []


class TestPreBattleChoices:
    """Tests for culture, scenario and formation."""

    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_bid_in_range(self, difficulty):
        for seed in range(25):
            choice = CombatBot(side_id="bot", difficulty=difficulty, seed=seed).choose_scenario(
                ["Planície", "Floresta"], ["Inverno"], max_bid=6,
            )
            assert 1 <= choice.bid <= 6
            assert choice.terrain in ("Planície", "Floresta")
            assert choice.season == "Inverno"

    def test_without_randomness_first_options(self):
        bot = CombatBot(side_id="bot", seed=2, profile=calm_profile())
        choice = bot.choose_scenario(["Colinas", "Urbano"], ["Outono", "Verão"], max_bid=10)

        assert (choice.terrain, choice.season) == ("Colinas", "Outono")
        assert 4 <= choice.bid <= 6

    def test_empty_options_rejected(self):
        bot = CombatBot(side_id="bot", seed=2)
        with pytest.raises(ValueError):
            bot.choose_scenario([], ["Inverno"])
        with pytest.raises(ValueError):
            bot.choose_scenario(["Colinas"], [])

    def test_hard_bot_attacks(self):
        bot = CombatBot(side_id="bot", difficulty=Difficulty.HARD, seed=2, profile=calm_profile())
        assert bot.choose_formation() == Formation.AGGRESSIVE

    def test_culture_from_offer(self):
        for seed in range(10):
            bot = CombatBot(side_id="bot", difficulty=Difficulty.EASY, seed=seed)
            assert bot.choose_culture(["Rjurik", "Brecht"]) in ("Rjurik", "Brecht")

    def test_name_from_profile(self):
        bot = CombatBot(side_id="bot", difficulty=Difficulty.HARD, seed=2)
        assert bot.choose_name() in get_profile("hard").names

    def test_unknown_difficulty(self):
        with pytest.raises(ValueError):
            get_profile("nightmare")


class TestObservation:
    """Bots see only their own side's view."""

    def test_opponent_hand_is_hidden(self, make_battle, make_side, make_card):
        state = make_battle(player=make_side("player", hand=(make_card("a"), make_card("b"))))
        view = observe(state, "bot")

        assert view.opponent.hand_size == 2
        assert not hasattr(view.opponent, "hand")

    def test_unknown_side(self, make_battle):
        with pytest.raises(KeyError):
            observe(make_battle(), "ghost")


class TestSimplePolicies:
    """Tests for the baseline policies."""

    def test_random_policy_is_legal(self, actions_battle):
        view = observe(actions_battle, "player")
        for seed in range(10):
            decision = RandomPolicy(seed=seed).decide(view)
            assert Reducer().apply(actions_battle, decision.action).success

    def test_first_legal_policy(self, actions_battle):
        decision = FirstLegalPolicy().decide(observe(actions_battle, "player"))
        assert decision.action.action_type == ActionType.PLAY_CARD

    def test_policy_name(self):
        assert FirstLegalPolicy().get_name() == "FirstLegalPolicy"


class TestEvaluator:
    """Tests for card scoring."""

    def test_expected_damage(self, make_battle, make_card):
        view = observe(make_battle(), "bot")
        assert CardEvaluator().expected_damage(make_card(atk=2), view) == 5.0

    def test_low_hp_favors_defense(self, make_battle, make_side, make_card):
        evaluator = CardEvaluator()
        wall = make_card("wall", dfn=2, cmd=1)
        healthy = observe(make_battle(), "bot")
        hurt = observe(make_battle(bot=make_side("bot", hp=2)), "bot")

        assert evaluator.heuristic_value(wall, hurt) > evaluator.heuristic_value(wall, healthy)
