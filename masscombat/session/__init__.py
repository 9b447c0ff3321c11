"""
Session Module - Manages ephemeral battle sessions.

A session represents one battle:
- Created when a player starts a battle against a bot
- Holds the current battle state and the bots
- Runs bot turns through the game loop
- Destroyed when the battle ends

Sessions are EPHEMERAL:
- No persistence to database
- A battle can be replayed from its seed and action history
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
]
