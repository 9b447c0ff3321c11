"""
Pytest fixtures for Mass Combat tests.
"""

import pytest

from ..catalog import SideSetup, load_default_catalog, setup_battle
from ..catalog.commanders import DEFAULT_GENERAL, DEFAULT_SPECIALISTS
from ..engine_core.action import Action
from ..engine_core.cards import Card, CardCatalog, CardInstance, UnitType
from ..engine_core.reducer import Reducer
from ..engine_core.rng import FixedDice
from ..engine_core.state import BattlePhase, BattleState, Environment, PlayedCard, Side


@pytest.fixture
def catalog() -> CardCatalog:
    """The built-in card catalog."""
    return load_default_catalog()


@pytest.fixture
def make_card():
    """Factory for ad hoc card definitions."""
    def factory(
        card_id: str = "test_card",
        atk: int = 0,
        dfn: int = 0,
        cmd: int = 1,
        unit_type: UnitType | None = None,
        effect: str | None = None,
    ) -> Card:
        return Card(
            card_id=card_id,
            name=card_id.replace("_", " ").title(),
            unit_type=unit_type,
            attack_bonus=atk,
            defense_bonus=dfn,
            command_required=cmd,
            effect_type=effect,
        )
    return factory


@pytest.fixture
def make_side():
    """
    Factory for a side with the standard roster.

    Commanders are <side>-inf (Infantry, command 2), <side>-cav
    (Cavalry, command 1) and <side>-gen (general, command 3).
    Hand instances are <side>-<card>-<i>; in-play instances <side>-<card>-p<i>.
    """
    def factory(
        side_id: str,
        hand: tuple[Card, ...] = (),
        in_play: tuple[Card, ...] = (),
        hp: int = 10,
        draw_pile: tuple[Card, ...] = (),
        **kwargs,
    ) -> Side:
        commanders = (
            DEFAULT_SPECIALISTS[0].instantiate(f"{side_id}-inf"),
            DEFAULT_SPECIALISTS[1].instantiate(f"{side_id}-cav"),
            DEFAULT_GENERAL.instantiate(f"{side_id}-gen", is_general=True),
        )
        return Side(
            side_id=side_id,
            name=side_id.title(),
            hp=hp,
            hand=tuple(CardInstance(f"{side_id}-{c.card_id}-{i}", c) for i, c in enumerate(hand)),
            draw_pile=tuple(
                CardInstance(f"{side_id}-{c.card_id}-d{i}", c) for i, c in enumerate(draw_pile)
            ),
            in_play=tuple(
                PlayedCard(CardInstance(f"{side_id}-{c.card_id}-p{i}", c), f"{side_id}-gen", 0)
                for i, c in enumerate(in_play)
            ),
            commanders=commanders,
            **kwargs,
        )
    return factory


@pytest.fixture
def make_battle(make_side):
    """Factory for a two-sided battle between "player" and "bot"."""
    def factory(
        player: Side | None = None,
        bot: Side | None = None,
        phase: BattlePhase = BattlePhase.ACTIONS,
        initiative: str | None = "player",
        environment: Environment | None = None,
        seed: int = 1,
    ) -> BattleState:
        return BattleState(
            battle_id="test_battle",
            sides=(player or make_side("player"), bot or make_side("bot")),
            phase=phase,
            initiative_side=initiative,
            environment=environment or Environment(),
            seed=seed,
        )
    return factory


@pytest.fixture
def fixed_reducer() -> Reducer:
    """Reducer whose every roll is 3."""
    return Reducer(dice=FixedDice(default=3))


@pytest.fixture
def new_battle(catalog) -> BattleState:
    """A freshly set up Anuire vs Vos battle in pre_combat."""
    return setup_battle(
        "test_battle",
        SideSetup("player", "Player", culture="Anuire"),
        SideSetup("bot", "Bot", culture="Vos", is_bot=True),
        environment=Environment(terrain="Planície", climate="Ameno", season="Primavera"),
        seed=7,
        catalog=catalog,
    )


@pytest.fixture
def actions_battle(new_battle) -> BattleState:
    """new_battle advanced to the first actions phase."""
    reducer = Reducer()
    state = new_battle
    for _ in range(3):
        result = reducer.apply(state, Action.advance_phase("player"))
        assert result.success, result.error
        state = result.new_state
    assert state.phase == BattlePhase.ACTIONS
    return state
