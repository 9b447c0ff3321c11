"""
Effect Resolver - Maps a card's effect tag and the battle context to modifiers.

This module handles:
- The closed set of effect tags (EffectType)
- The EffectResult bundle and its combine operation
- A registry of per-tag resolver functions
- The GameContext snapshot handed to every resolver

Resolvers are pure: they never touch the card, the context or the
battle state. An absent or unrecognized tag resolves to the identity
result rather than raising.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from enum import Enum
from functools import reduce
from typing import Callable, Iterable, TYPE_CHECKING

from .cards import Card, UnitType

if TYPE_CHECKING:
    from .state import BattleState


URBAN_TERRAIN = "Urbano"
COVER_MARKER = "Cobertura"
FOREST_TERRAIN = "Floresta"
WINTER_SEASON = "Inverno"
ROUGH_TERRAIN = frozenset({"Acidentado", "Alagado"})


class EffectType(Enum):
    """Every effect tag a card may carry."""
    DAMAGE_REDUCTION_FIRST = "damage_reduction_first"
    IGNORE_CLIMATE_HEAT = "ignore_climate_heat"
    IGNORE_CLIMATE_ALL = "ignore_climate_all"
    IGNORE_TERRAIN_ROUGH = "ignore_terrain_rough"
    BONUS_ON_TERRAIN_URBAN = "bonus_on_terrain_urban"
    BONUS_ON_SEASON_WINTER = "bonus_on_season_winter"
    BONUS_ON_DEFENDING = "bonus_on_defending"
    BONUS_ON_INITIATIVE = "bonus_on_initiative"
    ENEMY_ATTACK_DEBUFF = "enemy_attack_debuff"
    ENEMY_DEFENSE_DEBUFF = "enemy_defense_debuff"
    ENEMY_DISADVANTAGE = "enemy_disadvantage"
    EXTRA_DAMAGE_ON_WIN = "extra_damage_on_win"
    CANCEL_ENEMY_CARD_COST2 = "cancel_enemy_card_cost2"
    IGNORE_ATTACK_CARD = "ignore_attack_card"
    UNTAP_COMMANDER = "untap_commander"
    FORCE_TAP_COMMANDER = "force_tap_commander"
    DOUBLE_CARD_CAVALRY = "double_card_cavalry"
    DOUBLE_CARD_INFANTRY_FOREST = "double_card_infantry_forest"
    RETURN_TO_HAND = "return_to_hand"
    DRAW_CARD_ON_INITIATIVE_WIN = "draw_card_on_initiative_win"
    RETALIATION_DAMAGE = "retaliation_damage"
    BLOCK_UNIT_TYPE_INFANTRY = "block_unit_type_infantry"
    INCREASE_CLIMATE_PENALTY_ENEMY = "increase_climate_penalty_enemy"
    FORCE_SECONDARY_TERRAIN = "force_secondary_terrain"
    FLEXIBILITY_ANY = "flexibility_any"
    FLEXIBILITY_ANY_EXTRA_COST = "flexibility_any_extra_cost"
    FLEXIBILITY_INFANTRY_AS_CAVALRY = "flexibility_infantry_as_cavalry"
    FLEXIBILITY_SIEGE = "flexibility_siege"
    CHOICE_MOBILITY_OR_ATTACK = "choice_mobility_or_attack"

    @classmethod
    def parse(cls, tag: str | EffectType | None) -> EffectType | None:
        """Look up a tag, returning None for absent or unknown tags."""
        if tag is None or isinstance(tag, EffectType):
            return tag
        try:
            return cls(tag)
        except ValueError:
            return None


class ClimateIgnore(Enum):
    """Which climate penalties a side ignores. ALL dominates HEAT dominates NONE."""
    NONE = "none"
    HEAT = "heat"
    ALL = "all"

    @property
    def rank(self) -> int:
        return _CLIMATE_RANK[self]

    def dominant(self, other: ClimateIgnore) -> ClimateIgnore:
        return self if self.rank >= other.rank else other


_CLIMATE_RANK = {ClimateIgnore.NONE: 0, ClimateIgnore.HEAT: 1, ClimateIgnore.ALL: 2}


@dataclass(frozen=True)
class EffectResult:
    """
    Net modifiers produced by one card, or by a whole resolution window.

    EffectResult() is the identity. a + b combines two results:
    numbers sum, flags OR, sets union, the cancel window takes the
    larger cost, and climate ignoring takes the dominant level.
    """
    attack_modifier: int = 0
    defense_modifier: int = 0
    mobility_modifier: int = 0
    enemy_attack_modifier: int = 0
    enemy_defense_modifier: int = 0
    damage_reduction: int = 0
    extra_damage_on_win: int = 0
    retaliation_damage: int = 0
    draw_cards: int = 0
    enemy_climate_penalty: int = 0

    special_effects: frozenset[str] = frozenset()
    blocked_card_types: frozenset[str] = frozenset()
    ignore_terrain: frozenset[str] = frozenset()

    return_to_hand: bool = False
    force_enemy_disadvantage: bool = False
    untap_commander: bool = False
    force_tap_enemy_commander: bool = False

    cancel_enemy_card_max_cost: int | None = None
    ignore_climate: ClimateIgnore = ClimateIgnore.NONE

    @classmethod
    def identity(cls) -> EffectResult:
        return cls()

    @property
    def is_identity(self) -> bool:
        return self == _IDENTITY

    def __add__(self, other: EffectResult) -> EffectResult:
        if not isinstance(other, EffectResult):
            return NotImplemented

        values = {}
        for f in fields(self):
            mine, theirs = getattr(self, f.name), getattr(other, f.name)
            if f.name == "cancel_enemy_card_max_cost":
                if mine is None:
                    values[f.name] = theirs
                elif theirs is None:
                    values[f.name] = mine
                else:
                    values[f.name] = max(mine, theirs)
            elif f.name == "ignore_climate":
                values[f.name] = mine.dominant(theirs)
            elif isinstance(mine, bool):
                values[f.name] = mine or theirs
            elif isinstance(mine, frozenset):
                values[f.name] = mine | theirs
            else:
                values[f.name] = mine + theirs
        return EffectResult(**values)

    def ignores_climate(self, climate: str | None, heat_climates: frozenset[str]) -> bool:
        if climate is None:
            return False
        if self.ignore_climate == ClimateIgnore.ALL:
            return True
        return self.ignore_climate == ClimateIgnore.HEAT and climate in heat_climates


_IDENTITY = EffectResult()


@dataclass(frozen=True)
class GameContext:
    """
    Read-only snapshot passed to every resolver.

    secondary_terrain is the joined string of secondary terrains so
    resolvers can test for markers by substring.
    """
    terrain: str | None = None
    secondary_terrain: str = ""
    climate: str | None = None
    season: str | None = None
    is_defending: bool = False
    has_initiative: bool = False
    current_round: int = 1
    current_phase: str = ""
    my_total_damage: int = 0
    enemy_total_damage: int = 0

    @classmethod
    def for_side(cls, state: BattleState, side_id: str) -> GameContext:
        """Build the context one side's cards resolve against."""
        side = state.get_side(side_id)
        if side is None:
            raise KeyError(side_id)
        opponent = state.opponent_of(side_id)
        env = state.environment
        has_initiative = state.initiative_side == side_id
        return cls(
            terrain=env.terrain,
            secondary_terrain=",".join(env.secondary_terrain),
            climate=env.climate,
            season=env.season,
            is_defending=state.initiative_side is not None and not has_initiative,
            has_initiative=has_initiative,
            current_round=state.round_number,
            current_phase=state.phase.value,
            my_total_damage=side.round_damage_dealt,
            enemy_total_damage=opponent.round_damage_dealt,
        )


# ============================================================================
# Resolver registry
# ============================================================================

Resolver = Callable[[Card, GameContext], EffectResult]

EFFECT_RESOLVERS: dict[EffectType, Resolver] = {}
EFFECT_LABELS: dict[EffectType, str] = {}


def register(effect_type: EffectType, label: str) -> Callable[[Resolver], Resolver]:
    """Register the resolver function for one effect tag."""
    def decorator(func: Resolver) -> Resolver:
        EFFECT_RESOLVERS[effect_type] = func
        EFFECT_LABELS[effect_type] = label
        return func
    return decorator


def _note(label: str, **values) -> EffectResult:
    return EffectResult(special_effects=frozenset({label}), **values)


@register(EffectType.DAMAGE_REDUCTION_FIRST, "Reduces the first damage taken by 1")
def _damage_reduction_first(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.DAMAGE_REDUCTION_FIRST], damage_reduction=1)


@register(EffectType.IGNORE_CLIMATE_HEAT, "Ignores heat and desert climate")
def _ignore_climate_heat(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.IGNORE_CLIMATE_HEAT], ignore_climate=ClimateIgnore.HEAT)


@register(EffectType.IGNORE_CLIMATE_ALL, "Ignores every climate penalty")
def _ignore_climate_all(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.IGNORE_CLIMATE_ALL], ignore_climate=ClimateIgnore.ALL)


@register(EffectType.IGNORE_TERRAIN_ROUGH, "Ignores rough and flooded terrain")
def _ignore_terrain_rough(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.IGNORE_TERRAIN_ROUGH], ignore_terrain=ROUGH_TERRAIN)


@register(EffectType.BONUS_ON_TERRAIN_URBAN, "+1 attack and +1 defense in urban terrain or cover")
def _bonus_on_terrain_urban(card: Card, ctx: GameContext) -> EffectResult:
    if ctx.terrain == URBAN_TERRAIN or COVER_MARKER in ctx.secondary_terrain:
        return _note(
            EFFECT_LABELS[EffectType.BONUS_ON_TERRAIN_URBAN],
            attack_modifier=1,
            defense_modifier=1,
        )
    return EffectResult()


@register(EffectType.BONUS_ON_SEASON_WINTER, "+1 attack and +1 defense in winter")
def _bonus_on_season_winter(card: Card, ctx: GameContext) -> EffectResult:
    if ctx.season == WINTER_SEASON:
        return _note(
            EFFECT_LABELS[EffectType.BONUS_ON_SEASON_WINTER],
            attack_modifier=1,
            defense_modifier=1,
        )
    return EffectResult()


@register(EffectType.BONUS_ON_DEFENDING, "+1 attack while defending")
def _bonus_on_defending(card: Card, ctx: GameContext) -> EffectResult:
    if ctx.is_defending:
        return _note(EFFECT_LABELS[EffectType.BONUS_ON_DEFENDING], attack_modifier=1)
    return EffectResult()


@register(EffectType.BONUS_ON_INITIATIVE, "+2 attack with initiative, +1 while defending")
def _bonus_on_initiative(card: Card, ctx: GameContext) -> EffectResult:
    label = EFFECT_LABELS[EffectType.BONUS_ON_INITIATIVE]
    if ctx.has_initiative:
        return _note(label, attack_modifier=2)
    if ctx.is_defending:
        return _note(label, attack_modifier=1)
    return EffectResult()


@register(EffectType.ENEMY_ATTACK_DEBUFF, "Enemy attack -1")
def _enemy_attack_debuff(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.ENEMY_ATTACK_DEBUFF], enemy_attack_modifier=-1)


@register(EffectType.ENEMY_DEFENSE_DEBUFF, "Enemy defense -1")
def _enemy_defense_debuff(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.ENEMY_DEFENSE_DEBUFF], enemy_defense_modifier=-1)


@register(EffectType.ENEMY_DISADVANTAGE, "Enemy rolls with disadvantage")
def _enemy_disadvantage(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.ENEMY_DISADVANTAGE], force_enemy_disadvantage=True)


@register(EffectType.EXTRA_DAMAGE_ON_WIN, "+1 damage on a winning strike")
def _extra_damage_on_win(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.EXTRA_DAMAGE_ON_WIN], extra_damage_on_win=1)


@register(EffectType.CANCEL_ENEMY_CARD_COST2, "Cancels an enemy card costing up to 2")
def _cancel_enemy_card_cost2(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.CANCEL_ENEMY_CARD_COST2], cancel_enemy_card_max_cost=2)


@register(EffectType.IGNORE_ATTACK_CARD, "May ignore one enemy attack card")
def _ignore_attack_card(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.IGNORE_ATTACK_CARD])


@register(EffectType.UNTAP_COMMANDER, "Untaps one of your commanders")
def _untap_commander(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.UNTAP_COMMANDER], untap_commander=True)


@register(EffectType.FORCE_TAP_COMMANDER, "Taps an enemy commander with command 1")
def _force_tap_commander(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FORCE_TAP_COMMANDER], force_tap_enemy_commander=True)


@register(EffectType.DOUBLE_CARD_CAVALRY, "Cavalry commander may play two cards")
def _double_card_cavalry(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.DOUBLE_CARD_CAVALRY])


@register(EffectType.DOUBLE_CARD_INFANTRY_FOREST, "Infantry commander may play two cards in forest")
def _double_card_infantry_forest(card: Card, ctx: GameContext) -> EffectResult:
    if ctx.terrain == FOREST_TERRAIN:
        return _note(EFFECT_LABELS[EffectType.DOUBLE_CARD_INFANTRY_FOREST])
    return EffectResult()


@register(EffectType.RETURN_TO_HAND, "Returns to hand after use")
def _return_to_hand(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.RETURN_TO_HAND], return_to_hand=True)


@register(EffectType.DRAW_CARD_ON_INITIATIVE_WIN, "Draws a card with initiative")
def _draw_card_on_initiative_win(card: Card, ctx: GameContext) -> EffectResult:
    if ctx.has_initiative:
        return _note(EFFECT_LABELS[EffectType.DRAW_CARD_ON_INITIATIVE_WIN], draw_cards=1)
    return EffectResult()


@register(EffectType.RETALIATION_DAMAGE, "Deals 1 damage back when struck")
def _retaliation_damage(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.RETALIATION_DAMAGE], retaliation_damage=1)


@register(EffectType.BLOCK_UNIT_TYPE_INFANTRY, "Enemy cannot play infantry cards")
def _block_unit_type_infantry(card: Card, ctx: GameContext) -> EffectResult:
    return _note(
        EFFECT_LABELS[EffectType.BLOCK_UNIT_TYPE_INFANTRY],
        blocked_card_types=frozenset({UnitType.INFANTRY.value}),
    )


@register(EffectType.INCREASE_CLIMATE_PENALTY_ENEMY, "Enemy climate penalty +1")
def _increase_climate_penalty_enemy(card: Card, ctx: GameContext) -> EffectResult:
    return _note(
        EFFECT_LABELS[EffectType.INCREASE_CLIMATE_PENALTY_ENEMY],
        enemy_climate_penalty=1,
    )


@register(EffectType.FORCE_SECONDARY_TERRAIN, "Forces a secondary terrain")
def _force_secondary_terrain(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FORCE_SECONDARY_TERRAIN])


@register(EffectType.FLEXIBILITY_ANY, "Any commander may play this card")
def _flexibility_any(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FLEXIBILITY_ANY])


@register(EffectType.FLEXIBILITY_ANY_EXTRA_COST, "Any commander may play this card for +1 command")
def _flexibility_any_extra_cost(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FLEXIBILITY_ANY_EXTRA_COST])


@register(EffectType.FLEXIBILITY_INFANTRY_AS_CAVALRY, "Cavalry commanders may play this infantry card")
def _flexibility_infantry_as_cavalry(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FLEXIBILITY_INFANTRY_AS_CAVALRY])


@register(EffectType.FLEXIBILITY_SIEGE, "Any commander may play this siege card")
def _flexibility_siege(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.FLEXIBILITY_SIEGE])


@register(EffectType.CHOICE_MOBILITY_OR_ATTACK, "Choose +mobility or +attack")
def _choice_mobility_or_attack(card: Card, ctx: GameContext) -> EffectResult:
    return _note(EFFECT_LABELS[EffectType.CHOICE_MOBILITY_OR_ATTACK])


# ============================================================================
# Public API
# ============================================================================

def resolve(card: Card, context: GameContext) -> EffectResult:
    """
    Resolve one card's effect tag against the context.

    Total: absent or unknown tags give the identity result.
    """
    effect_type = EffectType.parse(card.effect_type)
    if effect_type is None:
        return EffectResult()
    resolver = EFFECT_RESOLVERS.get(effect_type)
    if resolver is None:
        return EffectResult()
    return resolver(card, context)


def combine(results: Iterable[EffectResult]) -> EffectResult:
    """Fold any number of results into one. combine([]) is the identity."""
    return reduce(lambda acc, r: acc + r, results, EffectResult())


def resolve_all(cards: Iterable[Card], context: GameContext) -> EffectResult:
    """Net result of every card in a resolution window."""
    return combine(resolve(card, context) for card in cards)


def describe_effect(tag: str | EffectType | None) -> str:
    """Short UI label for an effect tag. Unknown tags come back unchanged."""
    effect_type = EffectType.parse(tag)
    if effect_type is None:
        return "" if tag is None else str(tag)
    return EFFECT_LABELS.get(effect_type, effect_type.value)
