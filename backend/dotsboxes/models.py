from dataclasses import dataclass, field
import random
import string
import time
from typing import Container, Dict, Any
from uuid import uuid4

from dotsboxes.services.games.board import Edge


@dataclass
class Player:
    id: str
    name: str
    ready: bool = False
    score: int = 0
    is_host: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'ready': self.ready,
            'score': self.score,
            'isHost': self.is_host,
        }


@dataclass(frozen=True)
class MoveRecord:
    player_id: str
    edge: Edge
    completed_boxes: tuple = ()
    timestamp: float = field(default_factory=time.time)


def generate_player_id() -> str:
    return uuid4().hex[:12]


def generate_game_code(taken: Container[str], length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code
