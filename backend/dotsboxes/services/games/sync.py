"""Snapshot broadcasting and connection attachment.

Every accepted mutation produces one full snapshot, pushed to the room of
its session. Sends happen outside the session lock on a background task,
so a slow socket never holds up the game. Snapshots carry ``version``;
clients keep the highest one they have seen, which makes delivery order
irrelevant.
"""

import logging
import threading
from typing import Any, Dict, Optional, Set

from flask import current_app

from dotsboxes import socketio

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'
STATE_EVENT = 'state_update'
ENDED_EVENT = 'session_ended'


def room_for(code: str) -> str:
    return f"game:{code.upper()}"


class Attachments:
    """Which socket is attached to which session, and as which player."""

    def __init__(self):
        self._by_sid: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def attach(self, sid: str, code: str, player_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Attach ``sid`` to a session, returning the context it replaced."""
        ctx = {'game_code': code.upper(), 'player_id': player_id}
        with self._lock:
            previous = self._by_sid.get(sid)
            self._by_sid[sid] = ctx
        return previous

    def detach(self, sid: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._by_sid.pop(sid, None)

    def context(self, sid: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            ctx = self._by_sid.get(sid)
            return dict(ctx) if ctx else None

    def attached(self, code: str) -> Set[str]:
        code = code.upper()
        with self._lock:
            return {sid for sid, ctx in self._by_sid.items() if ctx['game_code'] == code}

    def drop_session(self, code: str) -> Set[str]:
        code = code.upper()
        with self._lock:
            sids = {sid for sid, ctx in self._by_sid.items() if ctx['game_code'] == code}
            for sid in sids:
                del self._by_sid[sid]
        return sids

    def clear(self) -> None:
        with self._lock:
            self._by_sid.clear()


attachments = Attachments()


def _dispatch(fn, *args) -> None:
    # Inline under TESTING so test clients see events deterministically
    if current_app.config.get('TESTING'):
        fn(*args)
    else:
        socketio.start_background_task(fn, *args)


def _send_snapshot(snapshot: Dict[str, Any], to: str) -> None:
    try:
        socketio.emit(STATE_EVENT, snapshot, to=to, namespace=NAMESPACE)
    except Exception as exc:
        # Clients recover through reconnect + fresh snapshot
        logger.warning(f"[broadcast-fail] to={to} version={snapshot.get('version')} error={exc}")


def publish(snapshot: Optional[Dict[str, Any]]) -> None:
    """Broadcast a post-mutation snapshot to everyone attached to its session."""
    if snapshot is None:
        return
    _dispatch(_send_snapshot, snapshot, room_for(snapshot['sessionId']))


def send_snapshot_to(sid: str, snapshot: Dict[str, Any]) -> None:
    """Catch a single (re)attached socket up with the current state."""
    _send_snapshot(snapshot, sid)


def _send_ended(code: str) -> None:
    try:
        socketio.emit(ENDED_EVENT, {'game_code': code}, to=room_for(code), namespace=NAMESPACE)
    except Exception as exc:
        logger.warning(f"[broadcast-fail] to={room_for(code)} event={ENDED_EVENT} error={exc}")


def end_session(code: str) -> None:
    """Tell every attached client the session is gone and forget them."""
    sids = attachments.drop_session(code)
    logger.info(f"[session-ended] game={code.upper()} detached={len(sids)}")
    _dispatch(_send_ended, code.upper())
