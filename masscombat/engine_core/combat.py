"""
Combat Resolver - Turns a round's played cards into damage.

Resolution of one round:
1. Cancellation windows remove enemy cards before anything resolves
2. Each side's remaining cards are combined into one net EffectResult
3. The initiative side strikes first, then the other side
4. Termination is checked after every hit point change
5. Untap / force-tap effects apply once both strikes are done

All dice come from the injected DiceSource, keyed by battle data.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from loguru import logger

from .cards import CardInstance
from .command import untap, force_tap
from .effect_resolver import EffectResult, GameContext, combine, resolve, resolve_all
from .phases import check_termination
from .rng import DiceSource, SeededDice, roll_key
from .rules import BattleRules, EnvironmentRules, DEFAULT_RULES
from .state import BattleState, PlayedCard, Side, Environment


@dataclass(frozen=True)
class StrikeReport:
    """One side's strike against the other."""
    attacker_id: str
    defender_id: str
    rolls: tuple[int, ...]
    attack: int
    defense: int
    damage: int
    extra_damage: int = 0
    retaliation: int = 0
    defender_hp: int = 0

    @property
    def total_damage(self) -> int:
        return self.damage + self.extra_damage


@dataclass(frozen=True)
class RoundReport:
    """Outcome of a resolve phase, kept on the state until the next one."""
    round_number: int
    nets: dict[str, EffectResult] = field(default_factory=dict)
    strikes: tuple[StrikeReport, ...] = ()
    cancelled: tuple[str, ...] = ()  # Instance ids removed by cancellation
    returning: tuple[str, ...] = ()  # Instance ids going back to hand

    def net_for(self, side_id: str) -> EffectResult:
        return self.nets.get(side_id, EffectResult())


def climate_penalty(
    env: Environment,
    own: EffectResult,
    enemy: EffectResult,
    rules: EnvironmentRules,
) -> int:
    """Attack lost to the climate, after ignore effects and enemy amplification."""
    if env.climate is None or own.ignores_climate(env.climate, rules.heat_climates):
        return 0
    base = rules.climate_penalties.get(env.climate, 0)
    if base == 0:
        return 0
    return base + enemy.enemy_climate_penalty


def terrain_penalty(env: Environment, own: EffectResult, rules: EnvironmentRules) -> int:
    """Attack lost to primary and secondary terrain the side does not ignore."""
    terrains = ([env.terrain] if env.terrain else []) + list(env.secondary_terrain)
    return sum(
        rules.terrain_penalties.get(t, 0)
        for t in terrains
        if t not in own.ignore_terrain
    )


def _choose_cancellations(state: BattleState) -> set[str]:
    """Instance ids cancelled by each side's cancel window, chosen simultaneously."""
    cancelled: set[str] = set()
    for side in state.sides:
        ctx = GameContext.for_side(state, side.side_id)
        max_cost = resolve_all((p.instance.card for p in side.in_play), ctx).cancel_enemy_card_max_cost
        if max_cost is None:
            continue
        opponent = state.opponent_of(side.side_id)
        eligible = [
            p for p in opponent.in_play
            if p.instance.card.command_required <= max_cost
            and p.instance.instance_id not in cancelled
        ]
        if not eligible:
            continue
        # First played wins ties
        target = max(eligible, key=lambda p: p.instance.card.command_required)
        cancelled.add(target.instance.instance_id)
        logger.debug("{} cancels {}", side.side_id, target.instance.instance_id)
    return cancelled


def _window(side: Side, cancelled: set[str]) -> list[PlayedCard]:
    return [p for p in side.in_play if p.instance.instance_id not in cancelled]


def roll_for(
    dice: DiceSource,
    state: BattleState,
    side_id: str,
    instance: CardInstance,
    disadvantage: bool,
    rules: BattleRules,
) -> int:
    """Roll one card's attack die, twice keeping the lower under disadvantage."""
    low, high = rules.combat.roll_min, rules.combat.roll_max
    key = roll_key(state.seed, state.round_number, side_id, instance.instance_id)
    value = dice.roll(low, high, key)
    if disadvantage:
        second = roll_key(state.seed, state.round_number, side_id, instance.instance_id, salt="disadvantage")
        value = min(value, dice.roll(low, high, second))
    return value


def _strike(
    state: BattleState,
    attacker_id: str,
    windows: dict[str, list[PlayedCard]],
    nets: dict[str, EffectResult],
    dice: DiceSource,
    rules: BattleRules,
) -> tuple[BattleState, StrikeReport | None]:
    attacker = state.get_side(attacker_id)
    defender = state.opponent_of(attacker_id)
    window = windows[attacker_id]
    if not window:
        return state, None

    own, enemy = nets[attacker_id], nets[defender.side_id]
    env = state.environment

    rolls = tuple(
        roll_for(dice, state, attacker_id, p.instance, enemy.force_enemy_disadvantage, rules)
        for p in window
    )
    attack = sum(p.instance.card.attack_bonus for p in window) + sum(rolls)
    attack += own.attack_modifier + enemy.enemy_attack_modifier
    attack -= climate_penalty(env, own, enemy, rules.environment)
    attack -= terrain_penalty(env, own, rules.environment)

    defense = 0
    if rules.combat.subtract_defense:
        defense = sum(p.instance.card.defense_bonus for p in windows[defender.side_id])
        defense += enemy.defense_modifier + own.enemy_defense_modifier

    damage = max(0, attack - defense - enemy.damage_reduction)
    remaining = defender.hp - damage
    extra = own.extra_damage_on_win if damage > 0 and remaining <= 0 else 0
    new_hp = max(0, remaining - extra)

    defender = defender._copy_with(hp=new_hp)
    attacker = attacker._copy_with(round_damage_dealt=attacker.round_damage_dealt + damage + extra)
    state = state.with_side(defender).with_side(attacker)
    state = state.with_log(
        attacker_id, "strikes",
        f"attack {attack} vs defense {defense}: {damage + extra} damage, "
        f"{defender.name} at {new_hp} hp",
        limit=rules.log_limit,
    )
    state = check_termination(state, rules.log_limit)

    retaliation = 0
    if not state.is_finished and damage > 0 and enemy.retaliation_damage > 0:
        retaliation = enemy.retaliation_damage
        attacker = state.get_side(attacker_id)
        attacker = attacker._copy_with(hp=max(0, attacker.hp - retaliation))
        state = state.with_side(attacker).with_log(
            defender.side_id, "retaliates", f"{retaliation} damage", limit=rules.log_limit
        )
        state = check_termination(state, rules.log_limit)

    report = StrikeReport(
        attacker_id=attacker_id,
        defender_id=defender.side_id,
        rolls=rolls,
        attack=attack,
        defense=defense,
        damage=damage,
        extra_damage=extra,
        retaliation=retaliation,
        defender_hp=new_hp,
    )
    logger.debug("Strike {}", report)
    return state, report


def resolve_round(
    state: BattleState,
    rules: BattleRules = DEFAULT_RULES,
    dice: DiceSource | None = None,
) -> BattleState:
    """
    Resolve the cards played this round.

    Returns the new state with hit points, command pools and
    last_report updated. Finishes the battle as soon as a side is routed.
    """
    dice = dice or SeededDice()

    cancelled = _choose_cancellations(state)
    windows = {s.side_id: _window(s, cancelled) for s in state.sides}

    nets: dict[str, EffectResult] = {}
    returning: list[str] = []
    for side in state.sides:
        ctx = GameContext.for_side(state, side.side_id)
        results = [(p, resolve(p.instance.card, ctx)) for p in windows[side.side_id]]
        nets[side.side_id] = combine(r for _, r in results)
        returning.extend(p.instance.instance_id for p, r in results if r.return_to_hand)

    first = state.initiative_side or state.sides[0].side_id
    order = [first, state.opponent_of(first).side_id]

    strikes = []
    for attacker_id in order:
        state, report = _strike(state, attacker_id, windows, nets, dice, rules)
        if report is not None:
            strikes.append(report)
        if state.is_finished:
            break

    if not state.is_finished:
        for side_id in order:
            net = nets[side_id]
            if net.untap_commander:
                state = state.with_side(untap(state.get_side(side_id)))
            if net.force_tap_enemy_commander:
                enemy = state.opponent_of(side_id)
                state = state.with_side(force_tap(enemy, rules.command))

    report = RoundReport(
        round_number=state.round_number,
        nets=nets,
        strikes=tuple(strikes),
        cancelled=tuple(sorted(cancelled)),
        returning=tuple(returning),
    )
    logger.info(
        "Battle {} round {} resolved: {}",
        state.battle_id,
        state.round_number,
        ", ".join(f"{s.side_id}={s.hp}hp" for s in state.sides),
    )
    return state._copy_with(last_report=report)
