"""
API Module - HTTP interface to the battle engine.

Exposes the engine via REST API. A client:
1. Starts a battle against a bot
2. Reads its own side's view
3. Submits actions; bots reply in the same request
4. Ends the battle when done

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateBattleRequest,
    ActionRequest,
    # Responses
    BattleStateResponse,
    ActionResponse,
    BattleListResponse,
    CardListResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    CommanderInfo,
    OpponentInfo,
)
from .service import BattleService, card_info
from .app import create_app

__all__ = [
    # Requests
    "CreateBattleRequest",
    "ActionRequest",
    # Responses
    "BattleStateResponse",
    "ActionResponse",
    "BattleListResponse",
    "CardListResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "CommanderInfo",
    "OpponentInfo",
    # Service
    "BattleService",
    "card_info",
    "create_app",
]
