"""
FastAPI Application - REST API for battle clients.

Endpoints:
    POST   /api/v1/battles                 Start a battle against a bot
    GET    /api/v1/battles                 List battles in memory
    GET    /api/v1/battles/{id}?side=      Get the player's view of a battle
    POST   /api/v1/battles/{id}/actions    Submit play_card / pass / advance_phase
    DELETE /api/v1/battles/{id}            End a battle
    GET    /api/v1/cards?culture=          List card definitions
    GET    /health                         Health check

Bot Execution Flow:
    1. POST /actions applies the player's action
    2. Bots reply until it is the player's turn again (or the battle ends)
    3. Response includes bot_actions and the player's refreshed view

All responses are JSON with explicit Pydantic schemas.

Run with: uvicorn masscombat.api.app:create_app --factory
"""

from typing import Annotated, Optional, Union
import os

from .. import __version__

# Environment configuration
MASSCOMBAT_ENV = os.getenv("MASSCOMBAT_ENV", "development")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# Engine error codes that mean the battle was left untouched by a rule check
RULE_VIOLATIONS = {
    "ILLEGAL_ACTION",
    "INSUFFICIENT_COMMAND",
    "UNKNOWN_CARD",
    "UNKNOWN_COMMANDER",
    "INVALID_TRANSITION",
    "STALE_ACTION",
}


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional BattleService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    from fastapi import FastAPI, Query
    from fastapi.middleware.cors import CORSMiddleware
    from fastapi.responses import JSONResponse
    from loguru import logger

    from .service import BattleService
    from .schemas import (
        ActionRequest,
        ActionResponse,
        BattleListResponse,
        BattleStateResponse,
        CardListResponse,
        CreateBattleRequest,
        EndBattleResponse,
        ErrorCode,
        ErrorResponse,
        HealthResponse,
    )

    app = FastAPI(
        title="Mass Combat Engine API",
        description="""
Tactical card-combat resolution for mass battles, played against a bot.

## Error Codes

| Code | HTTP | Description |
|------|------|-------------|
| `ILLEGAL_ACTION` | 409 | Wrong phase, wrong turn, already passed, blocked type |
| `INSUFFICIENT_COMMAND` | 409 | Card cost exceeds the commander's free command |
| `UNKNOWN_CARD` | 409 | Card not in your hand |
| `UNKNOWN_COMMANDER` | 409 | Commander not on your roster |
| `INVALID_TRANSITION` | 409 | Phase skip, regression, or after the battle ended |
| `STALE_ACTION` | 409 | `expected_sequence` does not match the battle |
| `UNKNOWN_SIDE` | 404 | Side not in the battle |
| `BATTLE_NOT_FOUND` | 404 | Battle does not exist |
| `VALIDATION_ERROR` | 400 | Bad setup input |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or BattleService()

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_error(error: ErrorResponse) -> JSONResponse:
        if error.error_code.value in RULE_VIOLATIONS:
            status_code = 409
        elif error.error_code in (ErrorCode.BATTLE_NOT_FOUND, ErrorCode.UNKNOWN_SIDE):
            status_code = 404
        elif error.error_code == ErrorCode.SIDE_FORBIDDEN:
            status_code = 403
        else:
            status_code = 400
        return make_error_response(error.error_code, error.error, status_code, error.details)

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="masscombat", version=__version__)

    # =========================================================================
    # Battle Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/battles",
        response_model=ActionResponse,
        status_code=201,
        responses={400: {"model": ErrorResponse, "description": "Invalid setup"}},
        tags=["Battles"],
        summary="Start a battle against a bot",
    )
    async def create_battle(request: CreateBattleRequest) -> Union[ActionResponse, JSONResponse]:
        """
        Start a battle.

        The response already includes any bot actions taken before
        the player's first turn.
        """
        try:
            return api_service.create_battle(request)
        except ValueError as e:
            return make_error_response(ErrorCode.VALIDATION_ERROR, str(e))

    @app.get(
        "/api/v1/battles",
        response_model=BattleListResponse,
        tags=["Battles"],
        summary="List battles",
    )
    async def list_battles() -> BattleListResponse:
        return api_service.list_battles()

    @app.get(
        "/api/v1/battles/{battle_id}",
        response_model=BattleStateResponse,
        responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Battles"],
        summary="Get the player's view of a battle",
    )
    async def get_battle(
        battle_id: str,
        side: Annotated[Optional[str], Query(description="Side id (defaults to the player)")] = None,
    ) -> Union[BattleStateResponse, JSONResponse]:
        """Get the battle as seen by the player. The opponent's hand is only a count."""
        response = api_service.get_battle(battle_id, side)
        if isinstance(response, ErrorResponse):
            return from_error(response)
        return response

    @app.post(
        "/api/v1/battles/{battle_id}/actions",
        response_model=ActionResponse,
        responses={
            404: {"model": ErrorResponse, "description": "Battle not found"},
            409: {"model": ErrorResponse, "description": "Action rejected by the rules"},
        },
        tags=["Battles"],
        summary="Submit an action",
    )
    async def submit_action(
        battle_id: str,
        request: ActionRequest,
    ) -> Union[ActionResponse, JSONResponse]:
        """
        Submit the player's action.

        Bots reply before the response is returned. A rejected action
        leaves the battle exactly as it was.
        """
        response = api_service.submit_action(battle_id, request)
        if isinstance(response, ErrorResponse):
            logger.info("Battle {}: action rejected ({})", battle_id, response.error_code.value)
            return from_error(response)
        return response

    @app.delete(
        "/api/v1/battles/{battle_id}",
        response_model=EndBattleResponse,
        tags=["Battles"],
        summary="End a battle",
    )
    async def end_battle(
        battle_id: str,
        reason: Annotated[str, Query(description="Reason for ending")] = "user_ended",
    ) -> EndBattleResponse:
        """End a battle and release resources."""
        success = api_service.end_battle(battle_id, reason)
        return EndBattleResponse(success=success, battle_id=battle_id)

    # =========================================================================
    # Catalog
    # =========================================================================

    @app.get(
        "/api/v1/cards",
        response_model=CardListResponse,
        tags=["Cards"],
        summary="List card definitions",
    )
    async def list_cards(
        culture: Annotated[Optional[str], Query(description="Culture plus neutral cards")] = None,
    ) -> CardListResponse:
        return api_service.list_cards(culture)

    logger.info("API created ({})", MASSCOMBAT_ENV)
    return app
