"""
Tests for battle setup and the card catalog.

Tests:
- Sides are created whole (hand, draw pile, roster)
- Bad setup input raises ValueError
- Initiative bids
- Catalog pricing helpers
"""

import pytest

from ..catalog import (
    SAMPLE_CARDS,
    SideSetup,
    build_roster,
    build_side,
    calculate_vet_cost,
    get_template,
    minimum_command,
    resolve_bid,
    setup_battle,
)
from ..engine_core.cards import Card, CardCatalog
from ..engine_core.rules import DEFAULT_RULES
from ..engine_core.state import BattlePhase, check_invariants


class TestBuildSide:
    """Tests for creating one side."""

    def test_hand_and_draw_pile(self, catalog):
        side = build_side(SideSetup("player", "Player", culture="Anuire"), catalog, seed=3)
        pool = catalog.for_culture("Anuire")

        assert len(side.hand) == DEFAULT_RULES.hand_size
        assert len(side.hand) + len(side.draw_pile) == len(pool)
        assert side.hp == DEFAULT_RULES.starting_hp

    def test_roster(self, catalog):
        side = build_side(SideSetup("player", "Player", culture="Anuire"), catalog)
        ids = [c.commander_id for c in side.commanders]

        assert ids == ["player-cmd-1", "player-cmd-2", "player-general"]
        assert side.general.commander_id == "player-general"
        assert all(c.command_free == c.command_base for c in side.commanders)

    def test_explicit_deck(self, catalog):
        setup = SideSetup("player", "Player", culture="Vos", card_ids=["vos_berserkers", "volley"])
        side = build_side(setup, catalog)

        assert sorted(c.card_id for c in side.hand) == ["volley", "vos_berserkers"]
        assert side.draw_pile == ()

    def test_shuffle_is_seeded(self, catalog):
        setup = SideSetup("player", "Player", culture="Anuire")
        first = build_side(setup, catalog, seed=5)
        second = build_side(setup, catalog, seed=5)
        assert first.hand == second.hand

    def test_vet_budget_sets_hp(self, catalog):
        setup = SideSetup("player", "Player", culture="Anuire", vet_budget=120)
        assert build_side(setup, catalog).hp == 12

    def test_formation_is_recorded(self, catalog):
        setup = SideSetup("bot", "Bot", culture="Vos", formation="defensive")
        assert build_side(setup, catalog).formation == "defensive"


class TestBadInput:
    """Setup rejects malformed input."""

    def test_unknown_card(self, catalog):
        setup = SideSetup("player", "Player", culture="Anuire", card_ids=["dragon"])
        with pytest.raises(ValueError, match="unknown card"):
            build_side(setup, catalog)

    def test_card_from_another_culture(self, catalog):
        setup = SideSetup("player", "Player", culture="Anuire", card_ids=["vos_berserkers"])
        with pytest.raises(ValueError, match="belongs to Vos"):
            build_side(setup, catalog)

    def test_wrong_roster_size(self):
        setup = SideSetup("player", "Player", specialists=[get_template(1)])
        with pytest.raises(ValueError):
            build_roster(setup)

    def test_duplicate_side_ids(self, catalog):
        with pytest.raises(ValueError):
            setup_battle("b", SideSetup("x", "X"), SideSetup("x", "Y"), catalog=catalog)

    def test_bid_from_unknown_side(self, catalog):
        with pytest.raises(ValueError):
            setup_battle(
                "b", SideSetup("player", "P"), SideSetup("bot", "B"),
                catalog=catalog, bids={"ghost": 3},
            )

    def test_duplicate_card_ids_in_catalog(self):
        card = Card(card_id="a", name="A")
        with pytest.raises(ValueError):
            CardCatalog.from_cards([card, card])

    def test_negative_command(self):
        with pytest.raises(ValueError):
            Card(card_id="a", name="A", command_required=-1)

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            get_template(99)


class TestSetupBattle:
    """Tests for the initial battle state."""

    def test_initial_state(self, new_battle):
        assert new_battle.phase == BattlePhase.PRE_COMBAT
        assert new_battle.round_number == 1
        assert new_battle.sequence == 0
        assert new_battle.initiative_side is None
        assert new_battle.log[0].action == "battle created"
        check_invariants(new_battle)

    def test_bid_winner_takes_initiative(self, catalog):
        state = setup_battle(
            "b", SideSetup("player", "P", culture="Anuire"), SideSetup("bot", "B", culture="Vos"),
            catalog=catalog, bids={"player": 2, "bot": 5},
        )
        assert state.initiative_side == "bot"

    def test_tied_bid_is_seeded(self):
        winners = {resolve_bid({"player": 3, "bot": 3}, seed=11) for _ in range(5)}

        assert len(winners) == 1
        assert winners <= {"player", "bot"}

    def test_empty_bids(self):
        with pytest.raises(ValueError):
            resolve_bid({})


class TestCatalog:
    """Tests for catalog helpers."""

    def test_sample_cards_are_unique(self, catalog):
        assert len(catalog) == len(SAMPLE_CARDS)

    def test_culture_pool_includes_neutral_cards(self, catalog):
        pool = {c.card_id for c in catalog.for_culture("Khinasi")}

        assert "mage_archers" in pool
        assert "volley" in pool
        assert "vos_berserkers" not in pool

    @pytest.mark.parametrize("atk,dfn,mob,penalties,minor,major,expected", [
        (2, 0, 0, 0, False, False, 4),
        (1, 1, 1, 1, False, False, 5),
        (0, 0, 0, 0, True, False, 2),
        (1, 0, 0, 0, False, True, 6),
        (0, 0, 0, 3, False, False, 0),
    ])
    def test_vet_cost(self, atk, dfn, mob, penalties, minor, major, expected):
        card = Card(card_id="c", name="C", attack_bonus=atk, defense_bonus=dfn, mobility_bonus=mob)
        assert calculate_vet_cost(card, penalties, minor, major) == expected

    def test_minimum_command(self):
        assert minimum_command(Card(card_id="c", name="C", attack_bonus=3, defense_bonus=1)) == 3
        assert minimum_command(Card(card_id="c", name="C")) == 1

    def test_template_label(self):
        assert get_template(7).label == "#7 Geral"
        assert get_template(2).command == 2
