from typing import List, NamedTuple, Optional, Sequence

from .board import Board, BoxCoord, Edge


class EdgeResult(NamedTuple):
    next_board: Board
    completed_boxes: List[BoxCoord]
    scored: bool


def apply_edge(board: Board, edge: Edge, player_id: str) -> EdgeResult:
    """Draw ``edge`` for ``player_id`` and claim any boxes it closes.

    A taken or out-of-bounds edge returns the same board with nothing
    completed; callers must treat that as a rejected move. Only the boxes
    bounding the new edge are checked, since no other box can change.
    """
    if board.is_taken(edge):
        return EdgeResult(board, [], False)

    next_board = board.set_edge_owner(edge, player_id)
    completed: List[BoxCoord] = []
    for box in next_board.adjacent_boxes(edge):
        if next_board.box_owner(box) is not None:
            continue
        if all(next_board.edge_owner(e) is not None for e in next_board.bounding_edges(box)):
            next_board = next_board.set_box_owner(box, player_id)
            completed.append(box)
    return EdgeResult(next_board, completed, bool(completed))


def next_player(roster: Sequence[str], current_id: Optional[str]) -> Optional[str]:
    """Player after ``current_id`` in roster order, wrapping around."""
    if not roster:
        return None
    if current_id not in roster:
        return roster[0]
    idx = roster.index(current_id)
    return roster[(idx + 1) % len(roster)]


def turn_after(roster: Sequence[str], mover_id: str, scored: bool) -> str:
    # Closing a box earns another turn
    if scored:
        return mover_id
    return next_player(roster, mover_id)


def is_terminal(board: Board) -> bool:
    return board.is_complete()


def winners(scores: Sequence[tuple]) -> List[str]:
    """Ids of every top scorer from ``(player_id, score)`` pairs; several on a tie."""
    if not scores:
        return []
    top = max(score for _, score in scores)
    return [pid for pid, score in scores if score == top]
