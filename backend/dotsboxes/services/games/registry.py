"""In-memory room registry.

Maps room codes to live ``GameSession`` objects. The registry lock only
guards the map itself; game operations lock the individual session, so
rooms never wait on each other.
"""

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

from dotsboxes.models import Player, generate_game_code
from .errors import SessionNotFound
from .session import GameSession, SessionPolicy

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, app=None):
        self._sessions: Dict[str, GameSession] = {}
        self._lock = threading.Lock()
        self.policy = SessionPolicy()
        self.code_length = 4
        self.default_board_size = 5
        self.default_max_players = 2
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        cfg = app.config
        self.policy = SessionPolicy(
            min_players=int(cfg.get('MIN_PLAYERS', 2)),
            min_players_to_continue=int(cfg.get('MIN_PLAYERS_TO_CONTINUE', 2)),
            host_must_be_ready=bool(cfg.get('HOST_MUST_BE_READY', False)),
            max_players_limit=int(cfg.get('MAX_PLAYERS_LIMIT', 4)),
        )
        self.code_length = int(cfg.get('ROOM_CODE_LENGTH', 4))
        self.default_board_size = int(cfg.get('DEFAULT_BOARD_SIZE', 5))
        self.default_max_players = int(cfg.get('DEFAULT_MAX_PLAYERS', 2))
        self.clear()
        app.extensions['dotsboxes.sessions'] = self

    def create(self, host_nickname: str, board_size: Any = None,
               max_players: Any = None) -> Tuple[GameSession, Player, Dict[str, Any]]:
        """Open a lobby and seat its creator as host."""
        if board_size is None:
            board_size = self.default_board_size
        if max_players is None:
            max_players = self.default_max_players
        with self._lock:
            code = generate_game_code(self._sessions, length=self.code_length)
            session = GameSession(code, board_size, max_players, self.policy)
            host, snapshot = session.join(host_nickname)
            self._sessions[code] = session
        logger.info(f"[session-create] game={code} size={session.board.size} max_players={session.max_players}")
        return session, host, snapshot

    def get(self, code: Optional[str]) -> GameSession:
        key = (code or '').upper()
        with self._lock:
            session = self._sessions.get(key)
        if session is None or session.closed:
            raise SessionNotFound(code)
        return session

    def leave(self, code: str, player_id: str) -> Tuple[Dict[str, Any], bool]:
        """Remove a player; drop the session once nobody is left.

        Returns the post-leave snapshot and whether the session ended.
        """
        session = self.get(code)
        snapshot = session.leave(player_id)
        if session.closed:
            self.discard(session.session_id)
            return snapshot, True
        return snapshot, False

    def discard(self, code: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.pop(code.upper(), None)
        if session is not None:
            logger.info(f"[session-end] game={code}")
        return session

    def codes(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
