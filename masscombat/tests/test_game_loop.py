"""
Tests for sessions and the game loop.

Tests:
- Session lifecycle in the manager
- The loop stops whenever the human must act
- Turn order and rejected submissions
- Bot-only battles run to the end and replay from history
"""

import time

import pytest

from ..bots import CombatBot, Difficulty, DifficultyProfile, Selection
from ..catalog import TERRAINS
from ..engine_core.action import Action, ErrorCode
from ..engine_core.action_generator import legal_plays
from ..engine_core.state import BattlePhase, Environment
from ..session import GameLoop, LoopState, SessionManager, SessionState


@pytest.fixture
def manager():
    return SessionManager()


@pytest.fixture
def session(manager):
    return manager.create_session(
        player_name="Tester",
        player_culture="Anuire",
        difficulty=Difficulty.MEDIUM,
        seed=21,
        environment=Environment(terrain="Planície", climate="Ameno", season="Primavera"),
    )


class TestSessionManager:
    """Tests for creating and ending sessions."""

    def test_create_session(self, session, manager):
        assert session.state == SessionState.CREATED
        assert session.human_side_id == "player"
        assert session.is_bot("bot")
        assert not session.is_bot("player")
        assert session.battle.phase == BattlePhase.PRE_COMBAT
        assert session.metadata == {"seed": 21, "difficulty": "medium"}
        assert manager.get_session(session.session_id) is session

    def test_bot_picks_the_scenario(self, manager):
        session = manager.create_session(seed=4)
        assert session.battle.environment.terrain in TERRAINS

    def test_high_bid_takes_initiative(self, manager):
        session = manager.create_session(seed=4, player_bid=100)
        assert session.battle.initiative_side == "player"

    def test_simulation_has_no_human(self, manager):
        session = manager.create_session(seed=4, vs_bot=False)

        assert session.human_side_id is None
        assert set(session.bots) == {"player", "bot"}

    def test_end_session(self, manager, session):
        ended = manager.end_session(session.session_id, reason="abandoned")

        assert ended.state == SessionState.ABANDONED
        assert manager.get_session(session.session_id) is None
        assert manager.end_session(session.session_id) is None

    def test_list_sessions(self, manager, session):
        other = manager.create_session(seed=5)

        assert set(manager.list_active_sessions()) == {session.session_id, other.session_id}
        assert len(manager.list_sessions()) == 2

    def test_cleanup_removes_old_finished_sessions(self, manager, session):
        fresh = manager.create_session(seed=5)
        session.state = SessionState.GAME_OVER
        session.created_at = time.time() - 7200

        assert manager.cleanup_stale_sessions(max_age_seconds=3600) == 1
        assert manager.list_active_sessions() == [fresh.session_id]


class TestHumanTurns:
    """Tests for the loop with a human side."""

    def test_start_waits_for_human(self, session):
        result = GameLoop(session).start()

        assert result.success
        assert result.loop_state == LoopState.WAITING_HUMAN_ACTION
        assert result.view.phase == BattlePhase.ACTIONS
        assert result.view.side_id == "player"
        assert result.bot_actions == []
        assert session.state == SessionState.ACTIVE
        assert session.is_human_turn()

    def test_start_twice(self, session):
        loop = GameLoop(session)
        loop.start()

        result = loop.start()
        assert not result.success

    def test_play_then_bot_answers(self, session):
        loop = GameLoop(session)
        loop.start()
        instance, commander_id = legal_plays(session.battle.get_side("player"))[0]

        result = loop.play_card(instance.instance_id, commander_id)

        assert result.success, result.errors
        assert result.loop_state == LoopState.WAITING_HUMAN_ACTION
        assert len(result.bot_actions) == 1
        assert result.bot_actions[0].startswith("bot: ")
        assert any("plays" in change for change in result.changes)

    def test_bot_thinking_is_paced(self, session):
        slept = []
        loop = GameLoop(session, sleep=slept.append)
        loop.start()

        loop.pass_()
        assert slept
        assert all(0.8 <= s <= 1.5 for s in slept)

    def test_not_your_turn(self, session):
        loop = GameLoop(session)
        loop.start()
        session.current_actor = "bot"

        result = loop.pass_()
        assert not result.success
        assert result.error_code == ErrorCode.ILLEGAL_ACTION
        assert result.errors == ["Not your turn"]

    def test_cannot_act_for_the_bot(self, session):
        loop = GameLoop(session)
        loop.start()

        result = loop.submit(Action.pass_("bot"))
        assert result.error_code == ErrorCode.UNKNOWN_SIDE

    def test_stale_submission(self, session):
        loop = GameLoop(session)
        loop.start()
        before = session.battle

        result = loop.submit(Action.pass_("player", expected_sequence=999))

        assert result.error_code == ErrorCode.STALE_ACTION
        assert session.battle is before

    def test_rejected_card(self, session):
        loop = GameLoop(session)
        loop.start()

        result = loop.play_card("no-such-card", "player-general")
        assert result.error_code == ErrorCode.UNKNOWN_CARD
        assert result.loop_state == LoopState.WAITING_HUMAN_ACTION

    def test_passing_to_the_end(self, manager):
        session = manager.create_session(seed=8, max_rounds=6)
        loop = GameLoop(session)
        result = loop.start()

        for _ in range(50):
            if result.loop_state != LoopState.WAITING_HUMAN_ACTION:
                break
            result = loop.pass_()

        assert result.success
        assert result.loop_state in (LoopState.GAME_OVER, LoopState.ROUND_LIMIT)
        if result.loop_state == LoopState.ROUND_LIMIT:
            assert session.battle.round_number == 7
            assert session.battle.phase == BattlePhase.INITIATIVE
        else:
            assert session.battle.winner == "bot"

    def test_round_limit_is_final(self, manager):
        """After the round limit stops the battle no further action is applied."""
        session = manager.create_session(
            seed=8,
            max_rounds=1,
            environment=Environment(terrain="Planície", climate="Ameno", season="Primavera"),
        )
        session.bots["bot"] = CombatBot(side_id="bot", seed=1, profile=DifficultyProfile(
            difficulty=Difficulty.EASY,
            selection=Selection.RANDOM,
            pass_chance=1.0,
            random_factor=0.0,
            bid_multiplier=0.0,
            thinking_delay=(0.0, 0.0),
        ))
        loop = GameLoop(session)
        loop.start()

        result = loop.pass_()
        assert result.loop_state == LoopState.ROUND_LIMIT
        assert session.battle.round_number == 2
        assert session.battle.phase == BattlePhase.INITIATIVE
        before = session.battle

        advanced = loop.submit(Action.advance_phase("player", expected_sequence=before.sequence))
        assert not advanced.success
        assert advanced.error_code == ErrorCode.INVALID_TRANSITION
        assert advanced.loop_state == LoopState.ROUND_LIMIT

        assert loop.pass_().error_code == ErrorCode.INVALID_TRANSITION
        assert session.battle is before

    def test_simulation_requires_no_human(self, session):
        result = GameLoop(session).run_to_completion()
        assert not result.success


class TestSimulation:
    """Tests for bot-only battles."""

    @pytest.mark.parametrize("difficulty", ["easy", "hard"])
    def test_runs_to_the_end(self, manager, difficulty):
        session = manager.create_session(seed=13, difficulty=difficulty, vs_bot=False, max_rounds=30)
        result = GameLoop(session).run_to_completion()

        assert result.success
        assert result.view is None
        assert result.bot_actions
        assert result.loop_state in (LoopState.GAME_OVER, LoopState.ROUND_LIMIT)
        if result.loop_state == LoopState.GAME_OVER:
            assert session.state == SessionState.GAME_OVER
            assert result.winner in ("player", "bot")

    def test_history_replays_the_battle(self, manager):
        session = manager.create_session(seed=17, vs_bot=False, max_rounds=10)
        initial = session.battle

        GameLoop(session).run_to_completion()

        replayed = initial
        for action in session.history:
            result = session.reducer.apply(replayed, action)
            assert result.success, result.error
            replayed = result.new_state
        assert replayed == session.battle

    def test_same_seed_same_battle(self):
        finals = []
        for _ in range(2):
            manager = SessionManager()
            session = manager.create_session(seed=31, vs_bot=False, max_rounds=8)
            GameLoop(session).run_to_completion()
            finals.append((session.battle.winner, [s.hp for s in session.battle.sides], len(session.history)))

        assert finals[0] == finals[1]
