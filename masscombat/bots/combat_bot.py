"""
Combat Bot - Rule-based opponent for single-player battles.

This bot:
- Sees only its own SideView
- Plays only card/commander pairs the Command Economy accepts
- Is tuned by a DifficultyProfile (pass chance, randomness, selection)
- Also makes the pre-battle choices: culture, scenario bid, formation

The bot does NOT:
- Look ahead past the current round
- See the opponent's hand
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from loguru import logger

from ..catalog.cards import CULTURES
from ..engine_core.action import Action
from ..engine_core.action_generator import legal_plays
from ..engine_core.cards import CardInstance
from ..engine_core.command import pick_commander
from ..engine_core.rules import BattleRules, DEFAULT_RULES
from ..engine_core.view import SideView
from .difficulty import Difficulty, DifficultyProfile, Formation, Selection, get_profile
from .evaluator import CardEvaluator
from .policy import BotDecision, BotPolicy, BotTurnState, DeferredDecision, require_actions_phase


@dataclass(frozen=True)
class ScenarioChoice:
    """Pre-battle scenario preferences and the logistics bid."""
    terrain: str
    season: str
    bid: int


@dataclass
class CombatBot(BotPolicy):
    """
    Mass combat opponent.

    Usage:
        bot = CombatBot(side_id="bot", difficulty=Difficulty.HARD, seed=7)
        decision = bot.decide(observe(state, "bot"))
        deferred = bot.deliberate(observe(state, "bot"))
    """
    side_id: str
    difficulty: Difficulty = Difficulty.MEDIUM
    seed: int | None = None
    rules: BattleRules = DEFAULT_RULES
    profile: DifficultyProfile = None  # type: ignore
    evaluator: CardEvaluator = None  # type: ignore
    rng: random.Random = None  # type: ignore
    turn_state: BotTurnState = BotTurnState.IDLE
    _delay_rng: random.Random = field(default=None, repr=False)  # type: ignore

    def __post_init__(self):
        self.difficulty = Difficulty(self.difficulty)
        if self.profile is None:
            self.profile = get_profile(self.difficulty)
        if self.evaluator is None:
            self.evaluator = CardEvaluator(self.profile.weights, self.rules.combat)
        if self.rng is None:
            self.rng = random.Random(self.seed)
        # Delays draw from their own stream
        self._delay_rng = random.Random(f"{self.seed}:delay")

    # ------------------------------------------------------------------
    # Combat decisions
    # ------------------------------------------------------------------

    def decide(self, view: SideView) -> BotDecision:
        """
        Choose a play or a pass.

        Process:
        1. Enumerate legal card/commander pairs; none means pass
        2. Pass anyway with the profile's pass chance
        3. Pick a card: at random with the profile's random factor,
           otherwise by the profile's selection rule
        4. Pay with the cheapest sufficient specialist, general last
        """
        require_actions_phase(view)
        side = view.as_side()
        plays = legal_plays(side, self.rules.command)
        if not plays:
            return self._pass(view, "No legal play")

        if self.rng.random() < self.profile.pass_chance:
            return self._pass(view, f"Chose to hold ({self.difficulty.value})", len(plays))

        cards = _unique_cards(plays)
        if self.rng.random() < self.profile.random_factor:
            selection = Selection.RANDOM
        else:
            selection = self.profile.selection
        instance, score = self._select(cards, view, selection)

        commander = pick_commander(side, instance.card, self.rules.command)
        if commander is None:
            # legal_plays listed this card, so some commander must accept it
            raise AssertionError(f"No commander for legal card {instance.instance_id}")

        decision = BotDecision(
            action=Action.play_card(view.side_id, instance.instance_id, commander.commander_id),
            explanation=f"Playing {instance.name} with {commander.name} ({selection.value})",
            confidence=1.0 / len(cards) if selection == Selection.RANDOM else 1.0,
            evaluated_actions=len(plays),
            best_score=score,
            evaluation_details={"selection": selection.value, "candidates": len(cards)},
        )
        logger.debug("{} decides: {}", self.side_id, decision.explanation)
        return decision

    def _pass(self, view: SideView, reason: str, evaluated: int = 0) -> BotDecision:
        logger.debug("{} passes: {}", self.side_id, reason)
        return BotDecision(
            action=Action.pass_(view.side_id),
            explanation=reason,
            evaluated_actions=evaluated,
        )

    def _select(
        self,
        cards: list[CardInstance],
        view: SideView,
        selection: Selection,
    ) -> tuple[CardInstance, float]:
        if selection == Selection.RANDOM:
            chosen = self.rng.choice(cards)
            return chosen, self.evaluator.heuristic_value(chosen.card, view)

        if selection == Selection.WEIGHTED:
            weights = [1 + max(0, c.card.attack_bonus) for c in cards]
            chosen = self.rng.choices(cards, weights=weights, k=1)[0]
            return chosen, float(chosen.card.attack_bonus)

        scored = [
            (
                self.evaluator.expected_damage(c.card, view),
                self.evaluator.heuristic_value(c.card, view),
                c,
            )
            for c in cards
        ]
        best = max(scored, key=lambda s: (s[0], s[1], s[2].instance_id))
        return best[2], best[0]

    def deliberate(self, view: SideView) -> DeferredDecision:
        """
        Decide now, deliver later.

        The returned decision is identical to what decide() gives; only
        its delivery is postponed by the thinking delay.
        """
        self.turn_state = BotTurnState.THINKING
        decision = self.decide(view)
        return DeferredDecision(decision=decision, delay_seconds=self.thinking_delay())

    def commit(self, deferred: DeferredDecision, sleep=None) -> BotDecision:
        """Deliver a deferred decision and mark the turn committed."""
        decision = deferred.deliver(sleep)
        self.turn_state = BotTurnState.COMMITTED
        return decision

    def reset_turn(self) -> None:
        self.turn_state = BotTurnState.IDLE

    def thinking_delay(self) -> float:
        """Seconds of apparent thought. Pacing only."""
        low, high = self.profile.thinking_delay
        return low + self._delay_rng.random() * (high - low)

    # ------------------------------------------------------------------
    # Pre-battle choices
    # ------------------------------------------------------------------

    def choose_name(self) -> str:
        if not self.profile.names:
            return f"Bot ({self.difficulty.value})"
        return self.rng.choice(self.profile.names)

    def choose_culture(self, cultures: list[str] | None = None) -> str:
        """Random with the profile's random factor, otherwise a preferred culture."""
        cultures = cultures or CULTURES
        if self.rng.random() < self.profile.random_factor:
            return self.rng.choice(cultures)
        preferred = [c for c in self.profile.preferred_cultures if c in cultures]
        return self.rng.choice(preferred or cultures)

    def choose_scenario(
        self,
        terrains: list[str],
        seasons: list[str],
        max_bid: int = 10,
    ) -> ScenarioChoice:
        """
        Pick terrain, season and a logistics bid.

        Without randomness the first option of each list is taken. The
        bid is max_bid * bid_multiplier, shifted by -1/0/+1 and clamped
        to 1..max_bid.
        """
        if not terrains or not seasons:
            raise ValueError("Scenario needs at least one terrain and one season")
        if max_bid < 1:
            raise ValueError("max_bid must be at least 1")

        if self.rng.random() < self.profile.random_factor:
            terrain = self.rng.choice(terrains)
        else:
            terrain = terrains[0]

        if self.rng.random() < self.profile.random_factor:
            season = self.rng.choice(seasons)
        else:
            season = seasons[0]

        base = int(max_bid * self.profile.bid_multiplier)
        bid = max(1, min(max_bid, base + self.rng.randint(-1, 1)))
        return ScenarioChoice(terrain=terrain, season=season, bid=bid)

    def choose_formation(self) -> Formation:
        if self.rng.random() < self.profile.random_factor:
            return self.rng.choice(list(Formation))
        if self.difficulty == Difficulty.EASY:
            return Formation.BALANCED
        if self.difficulty == Difficulty.MEDIUM:
            return Formation.BALANCED if self.rng.random() < 0.5 else Formation.AGGRESSIVE
        return Formation.AGGRESSIVE


def _unique_cards(plays: list[tuple[CardInstance, str]]) -> list[CardInstance]:
    seen: dict[str, CardInstance] = {}
    for instance, _ in plays:
        seen.setdefault(instance.instance_id, instance)
    return list(seen.values())
