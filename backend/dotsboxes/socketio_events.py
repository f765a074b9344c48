from flask_socketio import join_room, leave_room, emit
from dotsboxes import socketio
from flask import current_app, request
from dotsboxes.services.games import operations
from dotsboxes.services.games.errors import GameError, PlayerNotFound
from dotsboxes.services.games.sync import NAMESPACE, STATE_EVENT, attachments, room_for
from typing import Any, Callable, Dict


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(*args):
    # Dropping the socket is not a leave: the player keeps their seat and
    # catches up with a fresh snapshot on the next join_game
    ctx = attachments.detach(_get_sid())
    if ctx:
        current_app.logger.info(f"[detach] game={ctx['game_code']} player={ctx.get('player_id')}")


def handle_join_game(data):
    game_code = (data or {}).get('game_code')
    player_id = (data or {}).get('player_id')
    if not game_code:
        emit('error', {'message': 'game_code is required', 'code': 'BadRequest'})
        return
    try:
        _check_seat(operations.get_snapshot(game_code), player_id)
    except GameError as exc:
        emit('error', {'message': exc.message, 'code': exc.code})
        return

    sid = _get_sid()
    previous = attachments.attach(sid, game_code, player_id)
    if previous and previous['game_code'] != game_code.upper():
        leave_room(room_for(previous['game_code']))
    room = room_for(game_code)
    join_room(room)
    # Read only once in the room: anything committed later is broadcast to us
    try:
        snapshot = operations.get_snapshot(game_code)
    except GameError as exc:
        leave_room(room)
        attachments.detach(sid)
        emit('error', {'message': exc.message, 'code': exc.code})
        return
    current_app.logger.info(f"[attach] game={game_code.upper()} player={player_id} version={snapshot['version']}")
    emit('joined', {'room': room})
    emit(STATE_EVENT, snapshot)


def _check_seat(snapshot: Dict[str, Any], player_id: Any) -> None:
    if player_id and not any(p['id'] == player_id for p in snapshot['players']):
        raise PlayerNotFound(player_id)


def handle_leave_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required', 'code': 'BadRequest'})
        return
    room = room_for(game_code)
    leave_room(room)
    attachments.detach(_get_sid())
    emit('left', {'room': room})


def handle_ping(data):
    emit('pong', data or {})


def _ready(code: str, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    ready = data.get('ready')
    if not isinstance(ready, bool):
        return {'ok': False, 'error': 'ready must be true or false', 'code': 'BadRequest'}
    operations.set_ready(code, player_id, ready)
    return {'ok': True}


def _start(code: str, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    operations.start(code, player_id)
    return {'ok': True}


def _move(code: str, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return operations.submit_move(code, player_id, data.get('edge')).to_dict()


def _rematch(code: str, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    operations.rematch(code, player_id)
    return {'ok': True}


def _leave(code: str, player_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    ended = operations.leave(code, player_id)
    leave_room(room_for(code))
    attachments.detach(_get_sid())
    return {'ok': True, 'session_ended': ended}


_ACTIONS: Dict[str, Callable[[str, str, Dict[str, Any]], Dict[str, Any]]] = {
    'ready': _ready,
    'start': _start,
    'move': _move,
    'rematch': _rematch,
    'leave': _leave,
}


def handle_action(payload):
    """In-band game operation; the return value is the Socket.IO ack."""
    payload = payload or {}
    action = _ACTIONS.get(payload.get('type'))
    if action is None:
        return {'ok': False, 'error': f"Unknown action {payload.get('type')!r}", 'code': 'BadRequest'}
    data = payload.get('data') or {}
    ctx = attachments.context(_get_sid()) or {}
    game_code = payload.get('game_code') or ctx.get('game_code')
    player_id = data.get('player_id') or ctx.get('player_id')
    if not game_code:
        return {'ok': False, 'error': 'game_code is required', 'code': 'BadRequest'}
    try:
        return action(game_code, player_id, data)
    except GameError as exc:
        current_app.logger.info(f"[rejected] action={payload.get('type')} code={exc.code} reason={exc.message}")
        return {'ok': False, **exc.to_dict()}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    namespaces = [NAMESPACE, '/'] if testing else [NAMESPACE]
    for namespace in namespaces:
        socketio.on_event('connect', handle_connect, namespace=namespace)
        socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
        socketio.on_event('join_game', handle_join_game, namespace=namespace)
        socketio.on_event('leave_game', handle_leave_game, namespace=namespace)
        socketio.on_event('ping', handle_ping, namespace=namespace)
        socketio.on_event('action', handle_action, namespace=namespace)
