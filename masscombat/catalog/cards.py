"""
Built-in tactical card catalog.

A small sample deck per culture plus culture-neutral cards. Real
deployments load their catalog from data; the engine only depends on
CardCatalog.
"""

from __future__ import annotations
from dataclasses import replace

from ..engine_core.cards import Card, CardCatalog, UnitType
from ..engine_core.effect_resolver import EffectType


CULTURES = ["Anuire", "Khinasi", "Vos", "Rjurik", "Brecht"]

TERRAINS = ["Planície", "Floresta", "Colinas", "Urbano", "Acidentado", "Alagado", "Deserto"]
SECONDARY_TERRAINS = ["Cobertura", "Rio", "Estrada"]
CLIMATES = ["Ameno", "Calor", "Deserto", "Tempestade", "Nevasca"]
SEASONS = ["Primavera", "Verão", "Outono", "Inverno"]


def calculate_vet_cost(
    card: Card,
    penalties: int = 0,
    minor_effect: bool = False,
    major_effect: bool = False,
) -> int:
    """
    VET price of a card: +2 per bonus point, -1 per penalty point,
    +2 for a minor effect and +4 for a major one. Never negative.
    """
    cost = (card.attack_bonus + card.defense_bonus + card.mobility_bonus) * 2
    cost -= penalties
    cost += 2 if minor_effect else 0
    cost += 4 if major_effect else 0
    return max(0, cost)


def minimum_command(card: Card) -> int:
    """Lowest command a card may require: its highest bonus, at least 1."""
    return max(card.attack_bonus, card.defense_bonus, card.mobility_bonus, 1)


def _card(card_id, name, unit_type, atk=0, dfn=0, mob=0, cmd=1, effect=None, culture=None, text=""):
    card = Card(
        card_id=card_id,
        name=name,
        unit_type=unit_type,
        attack_bonus=atk,
        defense_bonus=dfn,
        mobility_bonus=mob,
        command_required=cmd,
        effect_type=effect.value if effect else None,
        culture=culture,
        description=text,
    )
    vet = calculate_vet_cost(card, minor_effect=effect is not None)
    return replace(card, vet_cost=vet)


INF, CAV, ARC, SIE, GEN = (
    UnitType.INFANTRY, UnitType.CAVALRY, UnitType.ARCHER, UnitType.SIEGE, UnitType.GENERAL,
)

SAMPLE_CARDS: list[Card] = [
    # Neutral
    _card("shield_wall", "Shield Wall", INF, dfn=2, cmd=2, effect=EffectType.DAMAGE_REDUCTION_FIRST),
    _card("spear_line", "Spear Line", INF, atk=1, dfn=1, cmd=1),
    _card("flanking_charge", "Flanking Charge", CAV, atk=3, mob=1, cmd=3, effect=EffectType.EXTRA_DAMAGE_ON_WIN),
    _card("mounted_scouts", "Mounted Scouts", CAV, mob=2, cmd=2, effect=EffectType.DRAW_CARD_ON_INITIATIVE_WIN),
    _card("volley", "Volley", ARC, atk=2, cmd=2),
    _card("harassing_fire", "Harassing Fire", ARC, atk=1, cmd=1, effect=EffectType.ENEMY_ATTACK_DEBUFF),
    _card("battering_ram", "Battering Ram", SIE, atk=2, cmd=2, effect=EffectType.ENEMY_DEFENSE_DEBUFF),
    _card("field_engineers", "Field Engineers", SIE, dfn=1, cmd=1, effect=EffectType.FLEXIBILITY_SIEGE),
    _card("rally", "Rally", GEN, atk=1, dfn=1, cmd=1, effect=EffectType.UNTAP_COMMANDER),
    _card("counter_order", "Counter Order", GEN, cmd=2, effect=EffectType.CANCEL_ENEMY_CARD_COST2),
    _card("feint", "Feint", None, mob=1, cmd=1, effect=EffectType.RETURN_TO_HAND),
    _card("hold_the_line", "Hold the Line", None, dfn=1, cmd=1, effect=EffectType.BONUS_ON_DEFENDING),
    _card("mercenary_band", "Mercenary Band", INF, atk=1, cmd=1, effect=EffectType.FLEXIBILITY_ANY_EXTRA_COST),

    # Anuire
    _card("anuirean_knights", "Anuirean Knights", CAV, atk=2, dfn=1, cmd=2,
          effect=EffectType.BONUS_ON_INITIATIVE, culture="Anuire"),
    _card("city_watch", "City Watch", INF, dfn=1, cmd=1,
          effect=EffectType.BONUS_ON_TERRAIN_URBAN, culture="Anuire"),
    _card("dismounted_knights", "Dismounted Knights", INF, atk=1, dfn=1, cmd=2,
          effect=EffectType.FLEXIBILITY_INFANTRY_AS_CAVALRY, culture="Anuire"),

    # Khinasi
    _card("desert_riders", "Desert Riders", CAV, atk=2, mob=1, cmd=2,
          effect=EffectType.IGNORE_CLIMATE_HEAT, culture="Khinasi"),
    _card("mage_archers", "Mage Archers", ARC, atk=2, cmd=2,
          effect=EffectType.ENEMY_DISADVANTAGE, culture="Khinasi"),
    _card("sandstorm", "Sandstorm", None, cmd=1,
          effect=EffectType.INCREASE_CLIMATE_PENALTY_ENEMY, culture="Khinasi"),

    # Vos
    _card("vos_berserkers", "Vos Berserkers", INF, atk=3, cmd=3,
          effect=EffectType.RETALIATION_DAMAGE, culture="Vos"),
    _card("winter_warband", "Winter Warband", INF, atk=1, dfn=1, cmd=2,
          effect=EffectType.BONUS_ON_SEASON_WINTER, culture="Vos"),
    _card("war_howl", "War Howl", GEN, cmd=1, effect=EffectType.FORCE_TAP_COMMANDER, culture="Vos"),

    # Rjurik
    _card("forest_skirmishers", "Forest Skirmishers", INF, atk=1, mob=1, cmd=1,
          effect=EffectType.DOUBLE_CARD_INFANTRY_FOREST, culture="Rjurik"),
    _card("rjurik_longbows", "Rjurik Longbows", ARC, atk=2, cmd=2,
          effect=EffectType.IGNORE_CLIMATE_ALL, culture="Rjurik"),

    # Brecht
    _card("brecht_pikes", "Brecht Pikes", INF, dfn=2, cmd=2,
          effect=EffectType.IGNORE_TERRAIN_ROUGH, culture="Brecht"),
    _card("marine_raiders", "Marine Raiders", INF, atk=1, cmd=1,
          effect=EffectType.BLOCK_UNIT_TYPE_INFANTRY, culture="Brecht"),
]


def load_default_catalog() -> CardCatalog:
    """The built-in catalog."""
    return CardCatalog.from_cards(SAMPLE_CARDS)
