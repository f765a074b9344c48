"""Socket.IO room client.

Glues a ``socketio.Client`` to the connection state machine and the
reflector. Automatic reconnection of python-socketio is disabled; retries
follow our own backoff and go through ``scheduler(delay_seconds, fn,
*args)``, which must return an object with ``cancel()``. The default
scheduler is ``threading.Timer``.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

import socketio

from .connection import ConnectionStateMachine, ReconnectPolicy
from .reflector import ClientReflector

logger = logging.getLogger(__name__)

NAMESPACE = '/ws'


def _timer_scheduler(delay: float, fn: Callable, *args):
    timer = threading.Timer(delay, fn, args=args)
    timer.daemon = True
    timer.start()
    return timer


class RoomClient:
    def __init__(self, url: str, game_code: str, player_id: Optional[str] = None,
                 policy: ReconnectPolicy = ReconnectPolicy(),
                 scheduler: Callable = _timer_scheduler,
                 sio: Optional[Any] = None,
                 on_state: Optional[Callable[[Dict[str, Any]], None]] = None,
                 on_ended: Optional[Callable[[str], None]] = None):
        self.url = url
        self.game_code = game_code.upper()
        self.player_id = player_id
        self.reflector = ClientReflector(player_id)
        self.machine = ConnectionStateMachine(policy)
        self.sio = sio if sio is not None else socketio.Client(reconnection=False)
        self._scheduler = scheduler
        self._retry_handle = None
        self._on_state = on_state
        self._on_ended = on_ended

        self.sio.on('connect', self._handle_connect, namespace=NAMESPACE)
        self.sio.on('disconnect', self._handle_disconnect, namespace=NAMESPACE)
        self.sio.on('state_update', self._handle_state, namespace=NAMESPACE)
        self.sio.on('session_ended', self._handle_ended, namespace=NAMESPACE)

    @property
    def state(self) -> str:
        return self.machine.state

    # ---- lifecycle ----

    def connect(self) -> None:
        self.machine.connect_requested()
        self._open()

    def close(self) -> None:
        self.machine.close()
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        if self.sio.connected:
            self.sio.disconnect()

    def _open(self) -> None:
        try:
            self.sio.connect(self.url, namespaces=[NAMESPACE])
        except socketio.exceptions.ConnectionError as exc:
            logger.info(f"[conn] connect to {self.url} failed: {exc}")
            self._lost()

    def _lost(self) -> None:
        plan = self.machine.connection_lost()
        if plan is None:
            return
        logger.info(f"[conn] retry {plan.attempt} in {plan.delay_ms}ms")
        self._retry_handle = self._scheduler(plan.delay_ms / 1000.0, self._retry, plan.token)

    def _retry(self, token: int) -> None:
        self._retry_handle = None
        if self.machine.retry_due(token):
            self._open()

    def resync(self) -> None:
        """Ask the server for a fresh snapshot of the room."""
        payload = {'game_code': self.game_code}
        if self.player_id:
            payload['player_id'] = self.player_id
        self.sio.emit('join_game', payload, namespace=NAMESPACE)

    # ---- socket events ----

    def _handle_connect(self, *args) -> None:
        if self.machine.closed:
            return
        self.machine.connected()
        self.resync()

    def _handle_disconnect(self, *args) -> None:
        if self.machine.closed:
            return
        self._lost()

    def _handle_state(self, snapshot: Dict[str, Any]) -> None:
        applied = self.reflector.apply_snapshot(snapshot)
        if self.machine.state != 'disconnected':
            self.machine.attached()
        if applied and self._on_state:
            self._on_state(snapshot)

    def _handle_ended(self, data: Dict[str, Any]) -> None:
        self.close()
        if self._on_ended:
            self._on_ended((data or {}).get('game_code', self.game_code))

    # ---- game actions ----

    def send_action(self, action_type: str, **data: Any) -> None:
        if self.player_id:
            data.setdefault('player_id', self.player_id)
        self.sio.emit(
            'action',
            {'game_code': self.game_code, 'type': action_type, 'data': data},
            namespace=NAMESPACE,
            callback=self._handle_ack,
        )

    def draw(self, edge: Any) -> bool:
        """Draw an edge optimistically and submit it. False if not playable locally."""
        proposed = self.reflector.propose(edge)
        if proposed is None:
            return False
        self.send_action('move', edge=proposed.to_dict())
        return True

    def _handle_ack(self, ack: Optional[Dict[str, Any]] = None) -> None:
        if ack and not ack.get('ok'):
            logger.info(f"[rejected] code={ack.get('code')} reason={ack.get('error')}")
            # The correction is a fresh snapshot, not a local rollback
            self.resync()
