"""
Command Economy - Affordability, spending and restoration of command points.

Every commander has a free pool bounded by its base. The general's pool
doubles as the side's shared general pool. Spending is all-or-nothing;
restoration happens only on the end-of-round transition.
"""

from __future__ import annotations

from loguru import logger

from .action import ErrorCode
from .cards import Card, UnitType
from .effect_resolver import EffectType
from .rules import CommandRules
from .state import Side, Commander, EngineInvariantViolation


DEFAULT_COMMAND_RULES = CommandRules()


def _natural_fit(card: Card, commander: Commander) -> bool:
    """Card matches the commander without any flexibility tag."""
    if card.unit_type is None or commander.is_general:
        return True
    if commander.specialization is None:
        return True
    return commander.specialization == card.unit_type


def effective_cost(
    card: Card,
    commander: Commander,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> int:
    """Command this commander pays to play the card."""
    cost = card.command_required
    if (
        EffectType.parse(card.effect_type) == EffectType.FLEXIBILITY_ANY_EXTRA_COST
        and not _natural_fit(card, commander)
    ):
        cost += rules.out_of_specialization_extra_cost
    return cost


def specialization_allows(
    card: Card,
    commander: Commander,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> bool:
    """Whether the commander's specialization permits playing the card."""
    if card.unit_type == UnitType.GENERAL:
        return commander.is_general
    if not rules.enforce_specialization or _natural_fit(card, commander):
        return True

    tag = EffectType.parse(card.effect_type)
    if tag in (EffectType.FLEXIBILITY_ANY, EffectType.FLEXIBILITY_ANY_EXTRA_COST):
        return True
    if tag == EffectType.FLEXIBILITY_INFANTRY_AS_CAVALRY:
        return (
            card.unit_type == UnitType.INFANTRY
            and commander.specialization == UnitType.CAVALRY
        )
    if tag == EffectType.FLEXIBILITY_SIEGE:
        return card.unit_type == UnitType.SIEGE
    return False


def check_play(
    side: Side,
    card: Card,
    commander: Commander,
    blocked: frozenset[str] | None = None,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> ErrorCode | None:
    """
    Check whether a commander may pay for a card right now.

    Returns None when the play is allowed, else the rejection code.
    Phase and hand membership are the reducer's concern.
    """
    if blocked is None:
        blocked = side.blocked_card_types
    if card.unit_type is not None and card.unit_type.value in blocked:
        return ErrorCode.ILLEGAL_ACTION
    if not specialization_allows(card, commander, rules):
        return ErrorCode.ILLEGAL_ACTION
    if effective_cost(card, commander, rules) > commander.command_free:
        return ErrorCode.INSUFFICIENT_COMMAND
    return None


def playable_commanders(
    side: Side,
    card: Card,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> list[Commander]:
    """Commanders that could pay for the card, in roster order."""
    return [c for c in side.commanders if check_play(side, card, c, rules=rules) is None]


def pick_commander(
    side: Side,
    card: Card,
    rules: CommandRules = DEFAULT_COMMAND_RULES,
) -> Commander | None:
    """
    The commander a sensible player would tap for this card.

    Prefers the non-general with the least free command that still
    covers the cost; the general is the last resort.
    """
    candidates = playable_commanders(side, card, rules)
    specialists = [c for c in candidates if not c.is_general]
    if specialists:
        return min(specialists, key=lambda c: (c.command_free, c.commander_id))
    return candidates[0] if candidates else None


def spend(side: Side, commander_id: str, cost: int) -> Side:
    """
    Deduct cost from one commander's free pool.

    Raises EngineInvariantViolation if the spend is not affordable;
    callers must check_play first.
    """
    commander = side.get_commander(commander_id)
    if commander is None:
        raise EngineInvariantViolation(f"{side.side_id}: no commander {commander_id}")
    if cost < 0 or cost > commander.command_free:
        raise EngineInvariantViolation(
            f"{side.side_id}/{commander_id}: cannot spend {cost} "
            f"from {commander.command_free}"
        )
    return side.with_commander(commander.with_command_free(commander.command_free - cost))


def restore(side: Side, rules: CommandRules = DEFAULT_COMMAND_RULES) -> Side:
    """End-of-round restoration, clamped at each commander's base."""
    restored = []
    for c in side.commanders:
        amount = rules.general_restore_amount if c.is_general else rules.restore_amount
        restored.append(c.with_command_free(min(c.command_base, c.command_free + amount)))
    return side._copy_with(commanders=tuple(restored))


def untap(side: Side) -> Side:
    """Fully restore the most depleted non-general commander."""
    tapped = [c for c in side.commanders if not c.is_general and c.is_tapped]
    if not tapped:
        return side
    target = max(tapped, key=lambda c: c.command_base - c.command_free)
    logger.debug("{} untaps {}", side.side_id, target.commander_id)
    return side.with_commander(target.with_command_free(target.command_base))


def force_tap(side: Side, rules: CommandRules = DEFAULT_COMMAND_RULES) -> Side:
    """Empty the first eligible enemy commander's pool."""
    for c in side.commanders:
        if c.is_general or c.command_free == 0:
            continue
        if c.command_base == rules.force_tap_max_base:
            logger.debug("{} has {} force-tapped", side.side_id, c.commander_id)
            return side.with_commander(c.with_command_free(0))
    return side
