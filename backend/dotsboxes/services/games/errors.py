"""Game errors.

Every rejection carries a stable ``code`` for clients and the HTTP status
the API answers with. Raising one of these never leaves a session half
updated: checks run before any state is touched.
"""

from typing import Any, Dict, Optional


class GameError(Exception):
    """Base class for all rejected game operations."""

    code = 'GameError'
    status = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {'error': self.message, 'code': self.code}
        if self.context:
            payload['context'] = self.context
        return payload


class InvalidConfig(GameError):
    code = 'InvalidConfig'
    status = 400


class IllegalEdge(GameError):
    code = 'IllegalEdge'
    status = 400


class NotHost(GameError):
    code = 'NotHost'
    status = 403


class SessionNotFound(GameError):
    code = 'SessionNotFound'
    status = 404

    def __init__(self, session_id: Optional[str]):
        super().__init__(f'Game {session_id} not found', session_id=session_id)


class PlayerNotFound(GameError):
    code = 'PlayerNotFound'
    status = 404

    def __init__(self, player_id: Optional[str]):
        super().__init__(f'Player {player_id} is not in this game', player_id=player_id)


class WrongPhase(GameError):
    code = 'WrongPhase'
    status = 409

    def __init__(self, operation: str, phase: str):
        super().__init__(f'Cannot {operation} while the game is {phase}', operation=operation, phase=phase)


class NotYourTurn(GameError):
    code = 'NotYourTurn'
    status = 409


class NotAllReady(GameError):
    code = 'NotAllReady'
    status = 409


class NotEnoughPlayers(GameError):
    code = 'NotEnoughPlayers'
    status = 409


class RoomFull(GameError):
    code = 'RoomFull'
    status = 409
