"""Inbound game operations shared by the HTTP routes and socket handlers.

Each function runs the mutation on the session, then hands the resulting
snapshot to the sync layer. Game errors propagate to the caller, which
reports them to the requesting client only.
"""

from typing import Any, Dict, Tuple

from dotsboxes import sessions
from . import sync
from .session import MoveOutcome


def create_session(nickname: str, board_size: Any = None, max_players: Any = None) -> Tuple[str, str, Dict[str, Any]]:
    session, host, snapshot = sessions.create(nickname, board_size=board_size, max_players=max_players)
    return session.session_id, host.id, snapshot


def join_session(code: str, nickname: str) -> Tuple[str, str]:
    session = sessions.get(code)
    player, snapshot = session.join(nickname)
    sync.publish(snapshot)
    return session.session_id, player.id


def get_snapshot(code: str) -> Dict[str, Any]:
    return sessions.get(code).snapshot()


def set_ready(code: str, player_id: str, ready: bool) -> None:
    sync.publish(sessions.get(code).set_ready(player_id, ready))


def start(code: str, player_id: str) -> None:
    sync.publish(sessions.get(code).start(player_id))


def submit_move(code: str, player_id: str, edge: Any) -> MoveOutcome:
    outcome = sessions.get(code).submit_move(player_id, edge)
    sync.publish(outcome.snapshot)
    return outcome


def rematch(code: str, player_id: str) -> None:
    sync.publish(sessions.get(code).rematch(player_id))


def leave(code: str, player_id: str) -> bool:
    """Remove a player. Returns True when that emptied and ended the session."""
    snapshot, ended = sessions.leave(code, player_id)
    if ended:
        sync.end_session(snapshot['sessionId'])
    else:
        sync.publish(snapshot)
    return ended
