"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages battle sessions and their game loops
3. Filters every response through the requesting side's view

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Bad setup input raises ValueError; unknown battles and rejected
actions come back as ErrorResponse.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from loguru import logger

from ..bots import Difficulty
from ..catalog import load_default_catalog
from ..engine_core.action import Action, ActionPayload, ActionType
from ..engine_core.cards import Card, CardCatalog, CardInstance
from ..engine_core.effect_resolver import describe_effect
from ..engine_core.state import Environment
from ..engine_core.view import SideView, observe
from ..session import GameLoop, LoopState, Session, SessionManager, TurnResult
from .schemas import (
    ActionRequest,
    ActionResponse,
    BattleListResponse,
    BattleStateResponse,
    BattleStatus,
    BattleSummary,
    CardInfo,
    CardInstanceInfo,
    CardListResponse,
    CommanderInfo,
    CreateBattleRequest,
    EnvironmentInfo,
    ErrorCode,
    ErrorResponse,
    LogEntryInfo,
    OpponentInfo,
)


def card_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.card_id,
        name=card.name,
        unit_type=card.unit_type.value if card.unit_type else None,
        culture=card.culture,
        attack_bonus=card.attack_bonus,
        defense_bonus=card.defense_bonus,
        mobility_bonus=card.mobility_bonus,
        command_required=card.command_required,
        effect_type=card.effect_type,
        effect_label=describe_effect(card.effect_type),
        vet_cost=card.vet_cost,
        description=card.description,
    )


def _instance_info(instance: CardInstance) -> CardInstanceInfo:
    return CardInstanceInfo(instance_id=instance.instance_id, card=card_info(instance.card))


@dataclass
class BattleService:
    """
    Main API service.

    Usage:
        service = BattleService()

        # Start a battle; the bot may already have acted
        response = service.create_battle(CreateBattleRequest(seed=7))

        # Play
        response = service.submit_action(battle_id, ActionRequest(action_type="pass"))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    catalog: CardCatalog = field(default_factory=load_default_catalog)

    # Game loops per battle
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    def create_battle(self, request: CreateBattleRequest) -> ActionResponse:
        """
        Create a battle against a bot and run it up to the player's first turn.
        """
        environment = None
        if request.environment is not None:
            env = request.environment
            environment = Environment(
                terrain=env.terrain,
                secondary_terrain=tuple(env.secondary_terrain),
                climate=env.climate,
                season=env.season,
            )

        session = self.session_manager.create_session(
            player_name=request.player_name,
            player_culture=request.culture,
            player_card_ids=request.card_ids,
            difficulty=Difficulty(request.difficulty.value),
            seed=request.seed,
            environment=environment,
            player_bid=request.bid,
            max_rounds=request.max_rounds,
        )

        game_loop = GameLoop(session)
        self._game_loops[session.session_id] = game_loop
        result = game_loop.start()
        return self._turn_to_response(session, result)

    def get_battle(self, battle_id: str, side_id: str | None = None) -> BattleStateResponse | ErrorResponse:
        """The player side's view of a battle. Any other side is refused."""
        session = self.session_manager.get_session(battle_id)
        if not session:
            return self._not_found(battle_id)

        side_id = side_id or session.human_side_id
        if session.battle.get_side(side_id) is None:
            return ErrorResponse(
                error=f"Side {side_id} not in battle {battle_id}",
                error_code=ErrorCode.UNKNOWN_SIDE,
            )
        if side_id != session.human_side_id:
            return ErrorResponse(
                error=f"Side {side_id} is not played from this client",
                error_code=ErrorCode.SIDE_FORBIDDEN,
            )
        return self._view_to_response(session, observe(session.battle, side_id))

    def submit_action(self, battle_id: str, request: ActionRequest) -> ActionResponse | ErrorResponse:
        """
        Apply the player's action and let the bots reply.

        Rule violations leave the battle untouched and come back as
        ErrorResponse with the engine's error code.
        """
        session = self.session_manager.get_session(battle_id)
        game_loop = self._game_loops.get(battle_id)
        if not session or not game_loop:
            return self._not_found(battle_id)

        action = Action(
            action_type=ActionType(request.action_type.value),
            payload=ActionPayload(
                side_id=session.human_side_id,
                card_instance_id=request.card_instance_id,
                commander_id=request.commander_id,
                target_phase=request.target_phase,
            ),
            expected_sequence=request.expected_sequence,
        )
        result = game_loop.submit(action)
        if not result.success:
            code = ErrorCode(result.error_code.value) if result.error_code else ErrorCode.ILLEGAL_ACTION
            return ErrorResponse(
                error="; ".join(result.errors),
                error_code=code,
                details={"sequence": session.battle.sequence, "phase": session.battle.phase.value},
            )
        return self._turn_to_response(session, result)

    def end_battle(self, battle_id: str, reason: str = "user_ended") -> bool:
        """End a battle and release its loop."""
        self._game_loops.pop(battle_id, None)
        session = self.session_manager.end_session(battle_id, reason)
        return session is not None

    def list_battles(self) -> BattleListResponse:
        battles = [
            BattleSummary(
                battle_id=session.session_id,
                player_name=session.battle.sides[0].name,
                opponent_name=session.battle.sides[1].name,
                round_number=session.battle.round_number,
                phase=session.battle.phase.value,
                winner=session.battle.winner,
            )
            for session in self.session_manager.list_sessions()
        ]
        return BattleListResponse(battles=battles, count=len(battles))

    def list_cards(self, culture: str | None = None) -> CardListResponse:
        cards = self.catalog.for_culture(culture) if culture else self.catalog.all()
        return CardListResponse(cards=[card_info(c) for c in cards], count=len(cards))

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------

    def _not_found(self, battle_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Battle {battle_id} not found",
            error_code=ErrorCode.BATTLE_NOT_FOUND,
        )

    def _turn_to_response(self, session: Session, result: TurnResult) -> ActionResponse:
        view = result.view or observe(session.battle, session.battle.sides[0].side_id)
        if result.bot_actions:
            logger.debug("Battle {}: bots took {} actions", session.session_id, len(result.bot_actions))
        return ActionResponse(
            success=result.success,
            battle=self._view_to_response(session, view),
            bot_actions=result.bot_actions,
            changes=result.changes,
        )

    def _status(self, session: Session, view: SideView) -> BattleStatus:
        if view.is_finished:
            return BattleStatus.GAME_OVER
        game_loop = self._game_loops.get(session.session_id)
        if game_loop and game_loop.state == LoopState.ROUND_LIMIT:
            return BattleStatus.ROUND_LIMIT
        if game_loop is None or game_loop.state == LoopState.NOT_STARTED:
            return BattleStatus.CREATED
        if session.current_actor == view.side_id:
            return BattleStatus.YOUR_TURN
        return BattleStatus.WAITING

    def _view_to_response(self, session: Session, view: SideView) -> BattleStateResponse:
        env = view.environment
        return BattleStateResponse(
            battle_id=view.battle_id,
            side_id=view.side_id,
            status=self._status(session, view),
            round_number=view.round_number,
            phase=view.phase.value,
            hp=view.hp,
            hand=[_instance_info(c) for c in view.hand],
            discard=[_instance_info(c) for c in view.discard],
            commanders=[
                CommanderInfo(
                    commander_id=c.commander_id,
                    name=c.name,
                    specialization=c.specialization.value if c.specialization else None,
                    command_base=c.command_base,
                    command_free=c.command_free,
                    is_general=c.is_general,
                    is_tapped=c.is_tapped,
                )
                for c in view.commanders
            ],
            blocked_card_types=sorted(view.blocked_card_types),
            passed=view.passed,
            has_initiative=view.has_initiative,
            opponent=OpponentInfo(
                side_id=view.opponent.side_id,
                name=view.opponent.name,
                hp=view.opponent.hp,
                hand_size=view.opponent.hand_size,
                culture=view.opponent.culture,
                passed=view.opponent.passed,
                in_play_count=view.opponent.in_play_count,
            ),
            environment=EnvironmentInfo(
                terrain=env.terrain,
                secondary_terrain=list(env.secondary_terrain),
                climate=env.climate,
                season=env.season,
            ),
            log=[
                LogEntryInfo(
                    actor=e.actor,
                    action=e.action,
                    details=e.details,
                    phase=e.phase,
                    round_number=e.round_number,
                )
                for e in view.log
            ],
            sequence=view.sequence,
            winner=view.winner,
        )
