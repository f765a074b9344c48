"""Authoritative game session.

One ``GameSession`` owns the board, roster, turn pointer and phase of a
room. Every mutating method holds the session lock for its whole body, so
moves from different players are applied one after another and each is
validated against the state the previous one left behind. Checks run
before anything is written; a rejected call leaves the session untouched.

Mutations return the snapshot taken before the lock is released, which is
what the sync layer broadcasts.
"""

import logging
import threading
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from dotsboxes.models import MoveRecord, Player, generate_player_id
from . import rules
from .board import Board, BoxCoord, Edge
from .errors import (
    IllegalEdge,
    InvalidConfig,
    NotAllReady,
    NotEnoughPlayers,
    NotHost,
    NotYourTurn,
    PlayerNotFound,
    RoomFull,
    SessionNotFound,
    WrongPhase,
)

logger = logging.getLogger(__name__)

LOBBY = 'lobby'
PLAYING = 'playing'
FINISHED = 'finished'

MIN_ROOM_PLAYERS = 2


class SessionPolicy(NamedTuple):
    min_players: int = 2
    min_players_to_continue: int = 2
    host_must_be_ready: bool = False
    max_players_limit: int = 4


class MoveOutcome(NamedTuple):
    edge: Edge
    completed_boxes: List[BoxCoord]
    scored: bool
    duplicate: bool
    snapshot: Optional[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ok': True,
            'edge': self.edge.to_dict(),
            'completed_boxes': [b.to_dict() for b in self.completed_boxes],
            'scored': self.scored,
            'duplicate': self.duplicate,
        }


class GameSession:
    def __init__(self, session_id: str, board_size: Any, max_players: Any,
                 policy: SessionPolicy = SessionPolicy()):
        if policy.min_players_to_continue < 1:
            raise InvalidConfig('At least one player must remain for a game to continue')
        if (not isinstance(max_players, int) or isinstance(max_players, bool)
                or not MIN_ROOM_PLAYERS <= max_players <= policy.max_players_limit):
            raise InvalidConfig(
                f'Max players must be between {MIN_ROOM_PLAYERS} and {policy.max_players_limit}',
                max_players=max_players,
            )
        self.session_id = session_id
        self.policy = policy
        self.max_players = max_players
        self.board = Board.create(board_size)
        self.players: List[Player] = []
        self.phase = LOBBY
        self.active_player_id: Optional[str] = None
        self.abandoned = False
        self.closed = False
        self.version = 0
        self._issued_ids = set()
        # Moves of the current turn window, used to spot retried submissions
        self._window: List[MoveRecord] = []
        self._lock = threading.RLock()

    # ---- queries ----

    @property
    def roster(self) -> List[str]:
        return [p.id for p in self.players]

    @property
    def host(self) -> Optional[Player]:
        return next((p for p in self.players if p.is_host), None)

    def get_player(self, player_id: Optional[str]) -> Player:
        for p in self.players:
            if p.id == player_id:
                return p
        raise PlayerNotFound(player_id)

    def winners(self) -> List[str]:
        if self.phase != FINISHED:
            return []
        return rules.winners([(p.id, p.score) for p in self.players])

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'sessionId': self.session_id,
            'version': self.version,
            'phase': self.phase,
            'players': [p.to_dict() for p in self.players],
            'activePlayerId': self.active_player_id,
            'maxPlayers': self.max_players,
            'abandoned': self.abandoned,
            'winners': self.winners(),
            'board': self.board.to_dict(),
        }

    def _commit(self) -> Dict[str, Any]:
        self.version += 1
        return self._snapshot()

    # ---- roster ----

    def join(self, name: str) -> Tuple[Player, Dict[str, Any]]:
        with self._lock:
            if self.closed:
                raise SessionNotFound(self.session_id)
            if self.phase != LOBBY:
                raise WrongPhase('join', self.phase)
            if len(self.players) >= self.max_players:
                raise RoomFull(f'Game {self.session_id} is full', max_players=self.max_players)
            player_id = generate_player_id()
            while player_id in self._issued_ids:
                player_id = generate_player_id()
            self._issued_ids.add(player_id)
            player = Player(id=player_id, name=name, is_host=not self.players)
            self.players.append(player)
            logger.info(f"[join] game={self.session_id} player={player_id} host={player.is_host}")
            return player, self._commit()

    def leave(self, player_id: str) -> Dict[str, Any]:
        with self._lock:
            player = self.get_player(player_id)
            idx = self.players.index(player)
            self.players.remove(player)
            if player.is_host and self.players:
                self.players[0].is_host = True
            if self.phase == PLAYING:
                if len(self.players) < self.policy.min_players_to_continue:
                    self._finish(abandoned=True)
                elif self.active_player_id == player_id:
                    # The player seated after the leaver now sits at idx
                    self.active_player_id = self.players[idx % len(self.players)].id
                    self._window = []
            if not self.players:
                self.closed = True
            logger.info(
                f"[leave] game={self.session_id} player={player_id} remaining={len(self.players)} phase={self.phase}"
            )
            return self._commit()

    # ---- lobby ----

    def set_ready(self, player_id: str, ready: bool) -> Optional[Dict[str, Any]]:
        """Set a player's ready flag. Outside the lobby this does nothing."""
        with self._lock:
            if self.phase != LOBBY:
                return None
            player = self.get_player(player_id)
            player.ready = bool(ready)
            return self._commit()

    def start(self, player_id: str) -> Dict[str, Any]:
        with self._lock:
            player = self.get_player(player_id)
            if self.phase != LOBBY:
                raise WrongPhase('start', self.phase)
            if not player.is_host:
                raise NotHost('Only the host may start the game')
            if len(self.players) < self.policy.min_players:
                raise NotEnoughPlayers(
                    f'At least {self.policy.min_players} players are required to start',
                    players=len(self.players),
                )
            waiting = [
                p.id for p in self.players
                if not p.ready and (self.policy.host_must_be_ready or not p.is_host)
            ]
            if waiting:
                raise NotAllReady('All players must be ready', waiting=waiting)
            self.phase = PLAYING
            self.abandoned = False
            # Roster order is frozen from here on; the host opens
            self.active_player_id = self.players[0].id
            self._window = []
            logger.info(f"[start] game={self.session_id} order={self.roster}")
            return self._commit()

    def rematch(self, player_id: str) -> Dict[str, Any]:
        with self._lock:
            self.get_player(player_id)
            if self.phase != FINISHED:
                raise WrongPhase('rematch', self.phase)
            self.board = Board.create(self.board.size)
            for p in self.players:
                p.score = 0
                p.ready = False
            self.phase = LOBBY
            self.active_player_id = None
            self.abandoned = False
            self._window = []
            logger.info(f"[rematch] game={self.session_id} requested_by={player_id}")
            return self._commit()

    # ---- play ----

    def submit_move(self, player_id: str, edge: Any) -> MoveOutcome:
        edge = Edge.parse(edge)
        with self._lock:
            if self.phase != PLAYING:
                raise WrongPhase('move', self.phase)
            if player_id != self.active_player_id:
                raise NotYourTurn('It is not your turn', active_player_id=self.active_player_id)
            previous = self._find_in_window(player_id, edge)
            if previous is not None:
                return MoveOutcome(edge, list(previous.completed_boxes), bool(previous.completed_boxes), True, None)
            if self.board.is_taken(edge):
                raise IllegalEdge(f'Edge {edge.key} is out of bounds or already drawn', edge=edge.to_dict())

            result = rules.apply_edge(self.board, edge, player_id)
            mover = self.get_player(player_id)
            self.board = result.next_board
            mover.score += len(result.completed_boxes)

            if rules.is_terminal(self.board):
                self._finish(abandoned=False)
            else:
                self.active_player_id = rules.turn_after(self.roster, player_id, result.scored)

            # The window only spans the turn still held by the mover
            if self.active_player_id == player_id:
                self._window.append(MoveRecord(player_id, edge, tuple(result.completed_boxes)))
            else:
                self._window = []

            logger.info(
                f"[move] game={self.session_id} player={player_id} edge={edge.key} "
                f"completed={len(result.completed_boxes)} next={self.active_player_id} phase={self.phase}"
            )
            return MoveOutcome(edge, result.completed_boxes, result.scored, False, self._commit())

    def _find_in_window(self, player_id: str, edge: Edge) -> Optional[MoveRecord]:
        for record in self._window:
            if record.player_id == player_id and record.edge == edge:
                return record
        return None

    def _finish(self, abandoned: bool) -> None:
        self.phase = FINISHED
        self.active_player_id = None
        self.abandoned = abandoned
        self._window = []
        logger.info(f"[finish] game={self.session_id} abandoned={abandoned} winners={self.winners()}")
