"""
Battle setup - Deck, roster and initiative bid for a new battle.

Builds both sides whole, then the initial BattleState in pre_combat.
Bad setup input (unknown card ids, wrong roster size) raises ValueError.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from loguru import logger

from ..engine_core.cards import CardCatalog, CardInstance
from ..engine_core.rules import BattleRules, DEFAULT_RULES
from ..engine_core.state import BattleState, Commander, Environment, Side
from .cards import load_default_catalog
from .commanders import CommanderTemplate, DEFAULT_GENERAL, DEFAULT_SPECIALISTS


@dataclass
class SideSetup:
    """
    Everything needed to build one side.

    card_ids=None deals from the culture's pool; specialists/general
    default to the standard roster. vet_budget, when set, fixes
    starting hit points at 10% of the budget.
    """
    side_id: str
    name: str
    culture: str | None = None
    card_ids: list[str] | None = None
    specialists: list[CommanderTemplate] = field(default_factory=lambda: list(DEFAULT_SPECIALISTS))
    general: CommanderTemplate = DEFAULT_GENERAL
    is_bot: bool = False
    vet_budget: int | None = None
    formation: str | None = None


def starting_hp(setup: SideSetup, rules: BattleRules) -> int:
    if setup.vet_budget is None:
        return rules.starting_hp
    return max(1, min(rules.combat.max_hp, setup.vet_budget // 10))


def build_roster(setup: SideSetup, rules: BattleRules = DEFAULT_RULES) -> tuple[Commander, ...]:
    """Specialists plus exactly one general."""
    if len(setup.specialists) != rules.specialist_count:
        raise ValueError(
            f"{setup.side_id}: roster needs {rules.specialist_count} specialists, "
            f"got {len(setup.specialists)}"
        )
    roster = [
        template.instantiate(f"{setup.side_id}-cmd-{i + 1}")
        for i, template in enumerate(setup.specialists)
    ]
    roster.append(setup.general.instantiate(f"{setup.side_id}-general", is_general=True))
    return tuple(roster)


def build_deck(
    setup: SideSetup,
    catalog: CardCatalog,
    rng: random.Random,
) -> list[CardInstance]:
    """Card instances for a side, shuffled."""
    if setup.card_ids is None:
        cards = catalog.for_culture(setup.culture)
    else:
        cards = []
        for card_id in setup.card_ids:
            card = catalog.get(card_id)
            if card is None:
                raise ValueError(f"{setup.side_id}: unknown card {card_id}")
            if card.culture is not None and card.culture != setup.culture:
                raise ValueError(
                    f"{setup.side_id}: card {card_id} belongs to {card.culture}, "
                    f"not {setup.culture}"
                )
            cards.append(card)

    deck = [
        CardInstance(instance_id=f"{setup.side_id}-{card.card_id}-{i + 1}", card=card)
        for i, card in enumerate(cards)
    ]
    rng.shuffle(deck)
    return deck


def build_side(
    setup: SideSetup,
    catalog: CardCatalog,
    rules: BattleRules = DEFAULT_RULES,
    seed: int = 0,
) -> Side:
    """Create a side whole: hand capped at hand_size, the rest as draw pile."""
    rng = random.Random(f"{seed}:{setup.side_id}")
    deck = build_deck(setup, catalog, rng)
    return Side(
        side_id=setup.side_id,
        name=setup.name,
        is_bot=setup.is_bot,
        culture=setup.culture,
        hp=starting_hp(setup, rules),
        hand=tuple(deck[:rules.hand_size]),
        draw_pile=tuple(deck[rules.hand_size:]),
        commanders=build_roster(setup, rules),
        formation=setup.formation,
    )


def resolve_bid(bids: dict[str, int], seed: int = 0) -> str:
    """
    Winner of the logistics bid; the winner takes initiative.

    Ties are broken by a seeded draw among the tied sides.
    """
    if not bids:
        raise ValueError("No bids submitted")
    best = max(bids.values())
    tied = sorted(side_id for side_id, bid in bids.items() if bid == best)
    if len(tied) == 1:
        return tied[0]
    return random.Random(f"{seed}:bid").choice(tied)


def setup_battle(
    battle_id: str,
    first: SideSetup,
    second: SideSetup,
    environment: Environment | None = None,
    seed: int = 0,
    catalog: CardCatalog | None = None,
    rules: BattleRules = DEFAULT_RULES,
    bids: dict[str, int] | None = None,
) -> BattleState:
    """
    Build the initial battle state in pre_combat.

    Usage:
        state = setup_battle(
            "b1",
            SideSetup("player", "Player", culture="Anuire"),
            SideSetup("bot", "Bot", culture="Vos", is_bot=True),
            environment=Environment(terrain="Floresta"),
            seed=7,
            bids={"player": 3, "bot": 2},
        )
    """
    if first.side_id == second.side_id:
        raise ValueError(f"Both sides use id {first.side_id}")
    catalog = catalog or load_default_catalog()

    sides = (
        build_side(first, catalog, rules, seed),
        build_side(second, catalog, rules, seed),
    )
    initiative = None
    if bids:
        unknown = set(bids) - {first.side_id, second.side_id}
        if unknown:
            raise ValueError(f"Bids from unknown sides: {sorted(unknown)}")
        initiative = resolve_bid(bids, seed)

    state = BattleState(
        battle_id=battle_id,
        sides=sides,
        initiative_side=initiative,
        environment=environment or Environment(),
        seed=seed,
    )
    state = state.with_log(
        "system", "battle created",
        f"{first.name} ({first.culture}) vs {second.name} ({second.culture})",
        limit=rules.log_limit,
    )
    if initiative:
        state = state.with_log("system", "bid won", initiative, limit=rules.log_limit)
    logger.info("Battle {} set up with seed {}", battle_id, seed)
    return state
