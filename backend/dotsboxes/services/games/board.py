"""Board model for dots and boxes.

``size`` is the number of boxes per row and column (N); the dot grid is
(N+1) x (N+1).

- horizontal edge ``('h', r, c)`` joins dot (r, c) to (r, c+1), r in [0, N], c in [0, N)
- vertical edge ``('v', r, c)`` joins dot (r, c) to (r+1, c), r in [0, N), c in [0, N]

Boards are immutable. The two ``set_*`` methods return a new board and are
meant to be called from the rules engine only.
"""

from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from .errors import InvalidConfig

H = 'h'
V = 'v'
MIN_BOARD_SIZE = 2
MAX_BOARD_SIZE = 12

Owner = Optional[str]
Grid = Tuple[Tuple[Owner, ...], ...]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Edge(NamedTuple):
    dir: str
    r: int
    c: int

    @property
    def key(self) -> str:
        return f'{self.dir}:{self.r}:{self.c}'

    def to_dict(self) -> Dict[str, Any]:
        return {'dir': self.dir, 'r': self.r, 'c': self.c}

    @classmethod
    def parse(cls, data: Any) -> 'Edge':
        """Build an edge from a wire dict.

        Malformed input never raises; it yields an edge no board accepts.
        """
        if isinstance(data, Edge):
            return data
        if not isinstance(data, dict):
            return cls('', -1, -1)
        direction = data.get('dir')
        r, c = data.get('r'), data.get('c')
        if not isinstance(direction, str):
            direction = ''
        if not (_is_int(r) and _is_int(c)):
            return cls(direction, -1, -1)
        return cls(direction, r, c)


class BoxCoord(NamedTuple):
    r: int
    c: int

    def to_dict(self) -> Dict[str, int]:
        return {'r': self.r, 'c': self.c}


def _empty_grid(rows: int, cols: int) -> Grid:
    return tuple((None,) * cols for _ in range(rows))


def _replace(grid: Grid, r: int, c: int, value: Owner) -> Grid:
    row = grid[r]
    new_row = row[:c] + (value,) + row[c + 1:]
    return grid[:r] + (new_row,) + grid[r + 1:]


class Board:
    __slots__ = ('size', '_h', '_v', '_boxes')

    def __init__(self, size: int, h: Grid, v: Grid, boxes: Grid):
        self.size = size
        self._h = h
        self._v = v
        self._boxes = boxes

    @classmethod
    def create(cls, size: Any) -> 'Board':
        if not _is_int(size) or not MIN_BOARD_SIZE <= size <= MAX_BOARD_SIZE:
            raise InvalidConfig(
                f'Board size must be between {MIN_BOARD_SIZE} and {MAX_BOARD_SIZE}',
                board_size=size,
            )
        return cls(
            size,
            _empty_grid(size + 1, size),
            _empty_grid(size, size + 1),
            _empty_grid(size, size),
        )

    # ---- read queries ----

    def is_in_bounds(self, edge: Edge) -> bool:
        n = self.size
        if edge.dir == H:
            return 0 <= edge.r <= n and 0 <= edge.c < n
        if edge.dir == V:
            return 0 <= edge.r < n and 0 <= edge.c <= n
        return False

    def is_taken(self, edge: Edge) -> bool:
        if not self.is_in_bounds(edge):
            return True
        return self.edge_owner(edge) is not None

    def edge_owner(self, edge: Edge) -> Owner:
        grid = self._h if edge.dir == H else self._v
        return grid[edge.r][edge.c]

    def box_owner(self, box: BoxCoord) -> Owner:
        return self._boxes[box.r][box.c]

    def is_box_in_bounds(self, box: BoxCoord) -> bool:
        return 0 <= box.r < self.size and 0 <= box.c < self.size

    def bounding_edges(self, box: BoxCoord) -> Tuple[Edge, Edge, Edge, Edge]:
        """Top, bottom, left and right edges of a box."""
        r, c = box
        return Edge(H, r, c), Edge(H, r + 1, c), Edge(V, r, c), Edge(V, r, c + 1)

    def adjacent_boxes(self, edge: Edge) -> List[BoxCoord]:
        """Boxes bounded by ``edge``: one on the perimeter, two inside."""
        if edge.dir == H:
            candidates = [BoxCoord(edge.r - 1, edge.c), BoxCoord(edge.r, edge.c)]
        else:
            candidates = [BoxCoord(edge.r, edge.c - 1), BoxCoord(edge.r, edge.c)]
        return [b for b in candidates if self.is_box_in_bounds(b)]

    @property
    def total_boxes(self) -> int:
        return self.size * self.size

    def owned_box_count(self, player_id: Owner = None) -> int:
        if player_id is None:
            return sum(1 for row in self._boxes for owner in row if owner is not None)
        return sum(1 for row in self._boxes for owner in row if owner == player_id)

    def is_complete(self) -> bool:
        return self.owned_box_count() == self.total_boxes

    def iter_edges(self) -> Iterator[Edge]:
        for r, row in enumerate(self._h):
            for c in range(len(row)):
                yield Edge(H, r, c)
        for r, row in enumerate(self._v):
            for c in range(len(row)):
                yield Edge(V, r, c)

    def available_edges(self) -> List[Edge]:
        return [e for e in self.iter_edges() if self.edge_owner(e) is None]

    # ---- writes (rules engine only) ----

    def set_edge_owner(self, edge: Edge, player_id: str) -> 'Board':
        if self.is_taken(edge):
            raise ValueError(f'Edge {edge.key} is already owned or out of bounds')
        if edge.dir == H:
            return Board(self.size, _replace(self._h, edge.r, edge.c, player_id), self._v, self._boxes)
        return Board(self.size, self._h, _replace(self._v, edge.r, edge.c, player_id), self._boxes)

    def set_box_owner(self, box: BoxCoord, player_id: str) -> 'Board':
        if self.box_owner(box) is not None:
            raise ValueError(f'Box {box} is already owned')
        return Board(self.size, self._h, self._v, _replace(self._boxes, box.r, box.c, player_id))

    # ---- wire form ----

    def to_dict(self) -> Dict[str, Any]:
        return {
            'boardSize': self.size,
            'edges': {
                H: [list(row) for row in self._h],
                V: [list(row) for row in self._v],
            },
            'boxes': [list(row) for row in self._boxes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Board':
        empty = cls.create(data.get('boardSize'))
        n = empty.size
        try:
            h = tuple(tuple(row) for row in data['edges'][H])
            v = tuple(tuple(row) for row in data['edges'][V])
            boxes = tuple(tuple(row) for row in data['boxes'])
        except (KeyError, TypeError) as exc:
            raise InvalidConfig('Malformed board payload') from exc
        shapes = (
            (h, n + 1, n),
            (v, n, n + 1),
            (boxes, n, n),
        )
        for grid, rows, cols in shapes:
            if len(grid) != rows or any(len(row) != cols for row in grid):
                raise InvalidConfig('Board payload does not match its size', board_size=n)
        return cls(n, h, v, boxes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return (self.size, self._h, self._v, self._boxes) == (other.size, other._h, other._v, other._boxes)

    def __hash__(self) -> int:
        return hash((self.size, self._h, self._v, self._boxes))

    def __repr__(self) -> str:
        return f'<Board {self.size}x{self.size} boxes={self.owned_box_count()}/{self.total_boxes}>'
