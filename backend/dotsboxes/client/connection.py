"""Client connection state machine.

``disconnected -> connecting -> attached``, moved only by explicit events.
``connected`` marks the transport as open but keeps the machine in
connecting until the first snapshot attaches it.
The machine never sleeps or starts timers itself: after a lost connection
it hands back a ``RetryPlan`` and the owner decides how to wait. Each plan
carries a token; ``retry_due`` with a stale token (the plan was superseded
or ``close`` was called) is refused, which is how pending retries are
cancelled.
"""

import logging
import threading
from typing import Callable, NamedTuple, Optional

logger = logging.getLogger(__name__)

DISCONNECTED = 'disconnected'
CONNECTING = 'connecting'
ATTACHED = 'attached'

_TRANSITIONS = {
    (DISCONNECTED, 'connect_requested'): CONNECTING,
    (DISCONNECTED, 'retry'): CONNECTING,
    (CONNECTING, 'connected'): CONNECTING,
    (CONNECTING, 'attached'): ATTACHED,
    (ATTACHED, 'attached'): ATTACHED,
    (CONNECTING, 'connection_lost'): DISCONNECTED,
    (ATTACHED, 'connection_lost'): DISCONNECTED,
    (DISCONNECTED, 'connection_lost'): DISCONNECTED,
}


class InvalidTransition(ValueError):
    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"Event '{event}' is not valid while {state}")


class ReconnectPolicy(NamedTuple):
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000
    max_attempts: int = 6

    @classmethod
    def from_config(cls, config) -> 'ReconnectPolicy':
        return cls(
            base_delay_ms=int(config.get('RECONNECT_BASE_DELAY_MS', 1000)),
            max_delay_ms=int(config.get('RECONNECT_MAX_DELAY_MS', 10000)),
            max_attempts=int(config.get('RECONNECT_MAX_ATTEMPTS', 6)),
        )

    def delay_for(self, attempt: int) -> int:
        """Delay before retry number ``attempt`` (1-based): doubling, capped."""
        return min(self.base_delay_ms * (2 ** (attempt - 1)), self.max_delay_ms)


class RetryPlan(NamedTuple):
    token: int
    attempt: int
    delay_ms: int


class ConnectionStateMachine:
    def __init__(self, policy: ReconnectPolicy = ReconnectPolicy(),
                 on_change: Optional[Callable[[str, str], None]] = None):
        self.policy = policy
        self.state = DISCONNECTED
        self.attempt = 0
        self.gave_up = False
        self.closed = False
        self.transport_open = False
        self._on_change = on_change
        self._pending: Optional[RetryPlan] = None
        self._token = 0
        self._lock = threading.Lock()

    @property
    def pending_retry(self) -> Optional[RetryPlan]:
        return self._pending

    def _move(self, event: str) -> None:
        new_state = _TRANSITIONS.get((self.state, event))
        if new_state is None:
            raise InvalidTransition(self.state, event)
        old_state, self.state = self.state, new_state
        if old_state != new_state:
            logger.debug(f"[conn] {old_state} -> {new_state} on {event}")
            if self._on_change:
                self._on_change(old_state, new_state)

    def connect_requested(self) -> None:
        with self._lock:
            self.closed = False
            self.gave_up = False
            self.attempt = 0
            self._pending = None
            self._token += 1
            self._move('connect_requested')

    def connected(self) -> None:
        """The transport is open; attachment waits for the first snapshot."""
        with self._lock:
            self._move('connected')
            self.transport_open = True

    def attached(self) -> None:
        """A fresh snapshot arrived over an open connection."""
        with self._lock:
            self._move('attached')
            self.attempt = 0

    def connection_lost(self) -> Optional[RetryPlan]:
        """Record a drop. Returns the retry to schedule, or None when none is due."""
        with self._lock:
            self._move('connection_lost')
            self.transport_open = False
            if self.closed:
                return None
            self.attempt += 1
            if self.attempt > self.policy.max_attempts:
                self.gave_up = True
                self._pending = None
                logger.info(f"[conn] giving up after {self.policy.max_attempts} attempts")
                return None
            self._token += 1
            self._pending = RetryPlan(self._token, self.attempt, self.policy.delay_for(self.attempt))
            return self._pending

    def retry_due(self, token: int) -> bool:
        """Called when a scheduled retry fires. False means it was cancelled."""
        with self._lock:
            if self.closed or self._pending is None or self._pending.token != token:
                return False
            self._pending = None
            self._move('retry')
            return True

    def close(self) -> None:
        """Deliberate close: cancel any pending retry and stay disconnected."""
        with self._lock:
            self.closed = True
            self._pending = None
            self.transport_open = False
            self._token += 1
            old_state, self.state = self.state, DISCONNECTED
            if old_state != DISCONNECTED and self._on_change:
                self._on_change(old_state, DISCONNECTED)
