import random

from dotsboxes.services.games import rules
from dotsboxes.services.games.board import Board, BoxCoord, Edge


def _draw(board, edges, player='a'):
    for e in edges:
        board = rules.apply_edge(board, e, player).next_board
    return board


def test_apply_edge_sets_owner_without_mutating_input():
    board = Board.create(2)
    result = rules.apply_edge(board, Edge('h', 0, 0), 'a')
    assert board.edge_owner(Edge('h', 0, 0)) is None
    assert result.next_board.edge_owner(Edge('h', 0, 0)) == 'a'
    assert result.completed_boxes == []
    assert result.scored is False


def test_taken_edge_is_a_no_op_every_time():
    board = rules.apply_edge(Board.create(2), Edge('v', 0, 0), 'a').next_board
    for _ in range(2):
        result = rules.apply_edge(board, Edge('v', 0, 0), 'b')
        assert result.next_board is board
        assert result.scored is False
        assert result.completed_boxes == []
    assert board.edge_owner(Edge('v', 0, 0)) == 'a'


def test_out_of_bounds_edge_is_a_no_op():
    board = Board.create(2)
    result = rules.apply_edge(board, Edge('h', 5, 0), 'a')
    assert result.next_board is board
    assert not result.scored


def test_two_by_two_scenario():
    board = Board.create(2)
    # A: top, then left of box (0,0)
    r = rules.apply_edge(board, Edge('h', 0, 0), 'A')
    assert not r.scored
    r = rules.apply_edge(r.next_board, Edge('v', 0, 0), 'A')
    assert not r.scored
    # B: bottom, then right; the right edge closes the box
    r = rules.apply_edge(r.next_board, Edge('h', 1, 0), 'B')
    assert not r.scored
    r = rules.apply_edge(r.next_board, Edge('v', 0, 1), 'B')
    assert r.scored
    assert r.completed_boxes == [BoxCoord(0, 0)]
    assert r.next_board.box_owner(BoxCoord(0, 0)) == 'B'
    assert rules.turn_after(['A', 'B'], 'B', r.scored) == 'B'


def test_one_edge_can_close_two_boxes():
    board = _draw(Board.create(2), [
        Edge('h', 0, 0), Edge('h', 1, 0), Edge('v', 0, 0),
        Edge('h', 0, 1), Edge('h', 1, 1), Edge('v', 0, 2),
    ])
    result = rules.apply_edge(board, Edge('v', 0, 1), 'b')
    assert result.scored
    assert sorted(result.completed_boxes) == [BoxCoord(0, 0), BoxCoord(0, 1)]
    assert result.next_board.owned_box_count('b') == 2


def test_owned_box_is_not_reclaimed():
    board = _draw(Board.create(2), [Edge('h', 0, 0), Edge('h', 1, 0), Edge('v', 0, 0), Edge('v', 0, 1)], 'a')
    assert board.box_owner(BoxCoord(0, 0)) == 'a'
    # Closing the neighbour must only claim the neighbour
    board = _draw(board, [Edge('h', 0, 1), Edge('h', 1, 1)], 'a')
    result = rules.apply_edge(board, Edge('v', 0, 2), 'b')
    assert result.completed_boxes == [BoxCoord(0, 1)]
    assert result.next_board.box_owner(BoxCoord(0, 0)) == 'a'


def test_box_owned_iff_all_four_edges_drawn_random_play():
    rng = random.Random(7)
    for size in (2, 3, 4):
        board = Board.create(size)
        edges = board.available_edges()
        rng.shuffle(edges)
        players = ['a', 'b', 'c']
        turn = 'a'
        for edge in edges:
            result = rules.apply_edge(board, edge, turn)
            board = result.next_board
            assert board.owned_box_count() <= size * size
            for r in range(size):
                for c in range(size):
                    box = BoxCoord(r, c)
                    closed = all(board.edge_owner(e) is not None for e in board.bounding_edges(box))
                    assert closed == (board.box_owner(box) is not None)
            assert rules.is_terminal(board) == (board.owned_box_count() == size * size)
            turn = rules.turn_after(players, turn, result.scored)
        assert rules.is_terminal(board)
        assert board.available_edges() == []


def test_next_player_wraps():
    roster = ['a', 'b', 'c']
    assert rules.next_player(roster, 'a') == 'b'
    assert rules.next_player(roster, 'c') == 'a'
    assert rules.next_player(roster, 'zz') == 'a'
    assert rules.next_player([], 'a') is None


def test_turn_after():
    assert rules.turn_after(['a', 'b'], 'a', scored=True) == 'a'
    assert rules.turn_after(['a', 'b'], 'a', scored=False) == 'b'


def test_winners_reports_ties():
    assert rules.winners([('a', 3), ('b', 1)]) == ['a']
    assert rules.winners([('a', 2), ('b', 2), ('c', 0)]) == ['a', 'b']
    assert rules.winners([]) == []
