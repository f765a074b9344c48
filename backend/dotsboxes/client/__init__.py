"""Client side of the sync protocol: optimistic board copy and reconnects.

``RoomClient`` needs the python-socketio client extra; the reflector and
connection state machine work on their own.
"""

from .connection import (
    ATTACHED,
    CONNECTING,
    DISCONNECTED,
    ConnectionStateMachine,
    InvalidTransition,
    ReconnectPolicy,
    RetryPlan,
)
from .reflector import ClientReflector

__all__ = [
    'ATTACHED',
    'CONNECTING',
    'DISCONNECTED',
    'ConnectionStateMachine',
    'InvalidTransition',
    'ReconnectPolicy',
    'RetryPlan',
    'ClientReflector',
]
