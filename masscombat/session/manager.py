"""
Session Manager - Creates and manages battle sessions.

LIFECYCLE:
1. Caller starts a session -> sides are built, bots attached
2. GameLoop drives the battle: human actions in, bot actions out
3. Battle finishes (or is abandoned) -> session is removed

PERSISTENCE RULES:
- NO database for battles
- Battle state is ephemeral (session-scoped only)
- A battle can be replayed from its seed and action history
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import time
import uuid

from loguru import logger

from ..bots import BotPolicy, CombatBot, Difficulty
from ..catalog import CLIMATES, SEASONS, TERRAINS, SideSetup, setup_battle
from ..engine_core.action import Action
from ..engine_core.cards import CardCatalog
from ..engine_core.reducer import Reducer
from ..engine_core.rules import BattleRules, DEFAULT_RULES
from ..engine_core.state import BattleState, Environment


class SessionState(Enum):
    """State of a battle session."""
    CREATED = "created"  # Battle built, not yet started
    ACTIVE = "active"  # Battle in progress
    GAME_OVER = "game_over"  # Battle finished
    ABANDONED = "abandoned"  # User quit


@dataclass
class Session:
    """
    An ephemeral battle session.

    Contains:
    - The current canonical battle state
    - The reducer (rules + dice) every action goes through
    - Bots by side id
    - The applied action history, for replay

    The session is destroyed when the battle ends.
    State is NOT persisted.
    """
    session_id: str
    battle: BattleState
    created_at: float
    reducer: Reducer = field(default_factory=Reducer)

    state: SessionState = SessionState.CREATED
    bots: dict[str, BotPolicy] = field(default_factory=dict)
    human_side_id: str | None = None

    # Side expected to act next in the actions phase
    current_actor: str | None = None
    max_rounds: int | None = None

    history: list[Action] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state in {SessionState.CREATED, SessionState.ACTIVE}

    def is_bot(self, side_id: str) -> bool:
        return side_id in self.bots

    def is_human_turn(self) -> bool:
        """Check if the human side is the one expected to act."""
        return self.human_side_id is not None and self.current_actor == self.human_side_id


class SessionManager:
    """
    Manages battle sessions.

    Responsibilities:
    - Create sessions (human vs bot, or bot vs bot)
    - Track active sessions
    - Clean up completed sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, rules: BattleRules = DEFAULT_RULES, catalog: CardCatalog | None = None):
        self.rules = rules
        self.catalog = catalog
        self._sessions: dict[str, Session] = {}

    def create_session(
        self,
        player_name: str = "Player",
        player_culture: str | None = "Anuire",
        player_card_ids: list[str] | None = None,
        difficulty: Difficulty | str = Difficulty.MEDIUM,
        seed: int | None = None,
        environment: Environment | None = None,
        player_bid: int | None = None,
        vs_bot: bool = True,
        max_rounds: int | None = None,
    ) -> Session:
        """
        Create a new battle session.

        Args:
            player_name: Display name of the first side
            player_culture: Culture of the first side
            player_card_ids: Explicit card pool (None deals from the culture)
            difficulty: Bot difficulty for bot-controlled sides
            seed: Battle seed (random when omitted)
            environment: Battlefield conditions (the bot picks when omitted)
            player_bid: Logistics bid of the first side (no bidding when omitted)
            vs_bot: False makes both sides bots (simulation)
            max_rounds: Stop driving the battle after this many rounds

        Returns:
            New Session ready to start
        """
        session_id = str(uuid.uuid4())
        if seed is None:
            seed = uuid.uuid4().int % (2 ** 31)

        opponent = CombatBot(side_id="bot", difficulty=difficulty, seed=seed, rules=self.rules)
        bots: dict[str, BotPolicy] = {"bot": opponent}
        first_id = "player"
        if not vs_bot:
            bots[first_id] = CombatBot(
                side_id=first_id, difficulty=difficulty, seed=seed + 1, rules=self.rules
            )

        scenario = opponent.choose_scenario(TERRAINS, SEASONS)
        if environment is None:
            climate = CLIMATES[seed % len(CLIMATES)]
            environment = Environment(terrain=scenario.terrain, climate=climate, season=scenario.season)

        bids = None
        if player_bid is not None:
            bids = {first_id: player_bid, "bot": scenario.bid}

        battle = setup_battle(
            battle_id=session_id,
            first=SideSetup(
                side_id=first_id,
                name=player_name,
                culture=player_culture,
                card_ids=player_card_ids,
                is_bot=not vs_bot,
            ),
            second=SideSetup(
                side_id="bot",
                name=opponent.choose_name(),
                culture=opponent.choose_culture(),
                is_bot=True,
                formation=opponent.choose_formation().value,
            ),
            environment=environment,
            seed=seed,
            catalog=self.catalog,
            rules=self.rules,
            bids=bids,
        )

        session = Session(
            session_id=session_id,
            battle=battle,
            created_at=time.time(),
            reducer=Reducer(rules=self.rules),
            bots=bots,
            human_side_id=first_id if vs_bot else None,
            max_rounds=max_rounds,
            metadata={"seed": seed, "difficulty": opponent.difficulty.value},
        )
        self._sessions[session_id] = session
        logger.info("Session {} created ({} vs {})", session_id, player_name, battle.sides[1].name)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> Session | None:
        """
        End a session and remove it from memory.

        This is called when:
        - The battle is finished
        - The user abandons the battle
        """
        session = self._sessions.pop(session_id, None)
        if session:
            if reason == "completed":
                session.state = SessionState.GAME_OVER
            else:
                session.state = SessionState.ABANDONED
            logger.info("Session {} ended: {}", session_id, reason)
        return session

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove finished sessions older than max_age.

        Called periodically to free memory.
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds and not session.is_active()
        ]
        for session_id in to_remove:
            self.end_session(session_id, reason="stale")
        return len(to_remove)
