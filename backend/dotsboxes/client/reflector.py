"""Optimistic client-side copy of a session.

Local moves run through the same rules engine as the server and show up
at once. Every authoritative snapshot replaces the whole local copy, with
no merging: a wrong guess (say, an edge another player took first) is
simply overwritten. Snapshots older than the last one applied are
dropped, since broadcasts may arrive out of order.
"""

import copy
from typing import Any, Dict, List, Optional

from dotsboxes.services.games import rules
from dotsboxes.services.games.board import Board, Edge

PLAYING = 'playing'


class ClientReflector:
    def __init__(self, player_id: Optional[str] = None):
        self.player_id = player_id
        self.session_id: Optional[str] = None
        self.version = -1
        self.phase: Optional[str] = None
        self.players: List[Dict[str, Any]] = []
        self.active_player_id: Optional[str] = None
        self.board: Optional[Board] = None
        self.winners: List[str] = []
        self.abandoned = False
        # Edges applied locally and not yet confirmed by a snapshot
        self.pending: List[Edge] = []

    @property
    def roster(self) -> List[str]:
        return [p['id'] for p in self.players]

    def score_of(self, player_id: str) -> int:
        for p in self.players:
            if p['id'] == player_id:
                return p['score']
        return 0

    def apply_snapshot(self, snapshot: Dict[str, Any]) -> bool:
        """Replace local state with ``snapshot``. False if it was stale."""
        same_session = snapshot.get('sessionId') == self.session_id
        if same_session and snapshot.get('version', 0) < self.version:
            return False
        board = Board.from_dict(snapshot['board'])
        self.session_id = snapshot.get('sessionId')
        self.version = snapshot.get('version', 0)
        self.phase = snapshot.get('phase')
        self.players = copy.deepcopy(snapshot.get('players') or [])
        self.active_player_id = snapshot.get('activePlayerId')
        self.winners = list(snapshot.get('winners') or [])
        self.abandoned = bool(snapshot.get('abandoned'))
        self.board = board
        self.pending = []
        return True

    def can_move(self) -> bool:
        return (
            self.board is not None
            and self.phase == PLAYING
            and self.player_id is not None
            and self.active_player_id == self.player_id
        )

    def propose(self, edge: Any) -> Optional[Edge]:
        """Apply a local move intent; returns the edge to submit, or None."""
        edge = Edge.parse(edge)
        if not self.can_move() or self.board.is_taken(edge):
            return None
        result = rules.apply_edge(self.board, edge, self.player_id)
        self.board = result.next_board
        for p in self.players:
            if p['id'] == self.player_id:
                p['score'] += len(result.completed_boxes)
        if self.board.is_complete():
            self.phase = 'finished'
            self.active_player_id = None
        else:
            self.active_player_id = rules.turn_after(self.roster, self.player_id, result.scored)
        self.pending.append(edge)
        return edge

    def to_snapshot(self) -> Dict[str, Any]:
        """Local view in snapshot form, for rendering and comparisons."""
        return {
            'sessionId': self.session_id,
            'version': self.version,
            'phase': self.phase,
            'players': copy.deepcopy(self.players),
            'activePlayerId': self.active_player_id,
            'abandoned': self.abandoned,
            'winners': list(self.winners),
            'board': self.board.to_dict() if self.board is not None else None,
        }
