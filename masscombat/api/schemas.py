"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between clients and the engine.
A client only ever receives a BattleStateResponse built from its own
side's view; the opponent's hand is reported as a count.

Error Codes:
- ILLEGAL_ACTION: Wrong phase, wrong turn, already passed, blocked card type
- INSUFFICIENT_COMMAND: Card cost exceeds the commander's free command
- UNKNOWN_CARD / UNKNOWN_COMMANDER / UNKNOWN_SIDE: Reference not found
- INVALID_TRANSITION: Phase skip, regression, or change after finish
- STALE_ACTION: expected_sequence does not match the battle
- BATTLE_NOT_FOUND: Battle does not exist or has ended
- VALIDATION_ERROR: Bad setup input (unknown card ids, culture mismatch)
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class BattleStatus(str, Enum):
    """Battle status values."""
    CREATED = "created"
    YOUR_TURN = "your_turn"
    WAITING = "waiting"
    ROUND_LIMIT = "round_limit"
    GAME_OVER = "game_over"


class DifficultyLevel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ActionKind(str, Enum):
    PLAY_CARD = "play_card"
    PASS = "pass"
    ADVANCE_PHASE = "advance_phase"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    INSUFFICIENT_COMMAND = "INSUFFICIENT_COMMAND"
    UNKNOWN_CARD = "UNKNOWN_CARD"
    UNKNOWN_COMMANDER = "UNKNOWN_COMMANDER"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    UNKNOWN_SIDE = "UNKNOWN_SIDE"
    STALE_ACTION = "STALE_ACTION"
    BATTLE_NOT_FOUND = "BATTLE_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SIDE_FORBIDDEN = "SIDE_FORBIDDEN"


# =============================================================================
# Shared Models
# =============================================================================

class EnvironmentInfo(BaseModel):
    """Battlefield conditions."""
    terrain: Optional[str] = None
    secondary_terrain: list[str] = Field(default_factory=list)
    climate: Optional[str] = None
    season: Optional[str] = None

    model_config = {"from_attributes": True}


class CardInfo(BaseModel):
    """Card definition for display."""
    card_id: str
    name: str
    unit_type: Optional[str] = Field(None, description="Infantaria, Cavalaria, Arqueiros, Cerco, Geral")
    culture: Optional[str] = None
    attack_bonus: int = 0
    defense_bonus: int = 0
    mobility_bonus: int = 0
    command_required: int = 0
    effect_type: Optional[str] = None
    effect_label: str = ""
    vet_cost: int = 0
    description: str = ""


class CardInstanceInfo(BaseModel):
    """A concrete card in a hand or pile."""
    instance_id: str
    card: CardInfo


class CommanderInfo(BaseModel):
    """A commander on the player's roster."""
    commander_id: str
    name: str
    specialization: Optional[str] = None
    command_base: int
    command_free: int
    is_general: bool = False
    is_tapped: bool = False


class OpponentInfo(BaseModel):
    """Public information about the opposing side."""
    side_id: str
    name: str
    hp: int
    hand_size: int
    culture: Optional[str] = None
    passed: bool = False
    in_play_count: int = 0


class LogEntryInfo(BaseModel):
    """One battle log line."""
    actor: str
    action: str
    details: str = ""
    phase: str = ""
    round_number: int = 0


# =============================================================================
# Request Models
# =============================================================================

class CreateBattleRequest(BaseModel):
    """Request to start a battle against a bot."""
    player_name: str = Field("Player", min_length=1, max_length=64)
    culture: Optional[str] = Field("Anuire", description="Anuire, Khinasi, Vos, Rjurik, Brecht")
    card_ids: Optional[list[str]] = Field(
        None, description="Explicit card pool; omitted deals the culture's cards"
    )
    difficulty: DifficultyLevel = DifficultyLevel.MEDIUM
    seed: Optional[int] = Field(None, description="Fixes deck order, dice and bot choices")
    environment: Optional[EnvironmentInfo] = None
    bid: Optional[int] = Field(None, ge=0, description="Logistics bid for initiative")
    max_rounds: Optional[int] = Field(None, ge=1)


class ActionRequest(BaseModel):
    """An action submitted by the player."""
    action_type: ActionKind
    card_instance_id: Optional[str] = None
    commander_id: Optional[str] = None
    target_phase: Optional[str] = None
    expected_sequence: Optional[int] = Field(
        None, ge=0, description="Rejected with STALE_ACTION unless it matches the battle"
    )


# =============================================================================
# Response Models
# =============================================================================

class BattleStateResponse(BaseModel):
    """
    One side's view of a battle.

    Never contains the opponent's hand contents.
    """
    battle_id: str
    side_id: str
    status: BattleStatus
    round_number: int
    phase: str
    hp: int
    hand: list[CardInstanceInfo] = Field(default_factory=list)
    discard: list[CardInstanceInfo] = Field(default_factory=list)
    commanders: list[CommanderInfo] = Field(default_factory=list)
    blocked_card_types: list[str] = Field(default_factory=list)
    passed: bool = False
    has_initiative: bool = False
    opponent: OpponentInfo
    environment: EnvironmentInfo
    log: list[LogEntryInfo] = Field(default_factory=list)
    sequence: int = 0
    winner: Optional[str] = None

    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of a submitted action, after bots have replied."""
    success: bool
    battle: BattleStateResponse
    bot_actions: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)


class BattleSummary(BaseModel):
    battle_id: str
    player_name: str
    opponent_name: str
    round_number: int
    phase: str
    winner: Optional[str] = None


class BattleListResponse(BaseModel):
    """Response listing battles in memory."""
    battles: list[BattleSummary]
    count: int


class CardListResponse(BaseModel):
    cards: list[CardInfo]
    count: int


class EndBattleResponse(BaseModel):
    """Response after ending a battle."""
    success: bool
    battle_id: str


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
