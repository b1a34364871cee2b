import random

from blockerino.game.bag import PieceBag
from blockerino.game.board import Board
from blockerino.game.errors import PowerUpUnavailable
from blockerino.game.pieces import PALETTE
from blockerino.game.powerups import PowerUpEngine, PowerUpType
from tests.helpers import fill, make_piece


def _engine(seed=0):
    rng = random.Random(seed)
    return PowerUpEngine(PieceBag(rng=rng), rng)


def test_color_bomb_clears_most_common_color_and_resyncs():
    board = fill(Board(8), [(0, 0), (3, 3), (7, 2)], color=PALETTE[2])
    fill(board, [(1, 1)], color=PALETTE[0])

    result = _engine().activate(PowerUpType.COLOR_BOMB, board, (), 3)
    assert result.success
    assert result.score_gained == 3 * 15
    assert {(c.row, c.col) for c in result.cleared_cells} == {(0, 0), (3, 3), (7, 2)}
    assert result.board.is_in_sync()
    assert result.board.can_place(make_piece("#"), 3, 3)
    assert result.board.grid.occupied[1, 1]
    # Original board is untouched.
    assert board.grid.occupied[3, 3]


def test_color_bomb_on_empty_board_fails():
    result = _engine().color_bomb(Board(8))
    assert not result.success
    assert isinstance(result.error, PowerUpUnavailable)


def test_line_clear_empties_an_occupied_line():
    board = fill(Board(8), [(4, 4)])
    result = _engine(3).line_clear(board)
    assert result.success
    assert result.line_count == 1
    assert result.score_gained == 10
    assert result.board.is_empty()
    assert result.board.is_in_sync()


def test_line_clear_on_empty_board_fails():
    assert not _engine().line_clear(Board(8)).success


def test_bomb_clears_densest_window():
    board = fill(Board(8), [(0, 0), (0, 1), (6, 6)])
    result = _engine().bomb(board)
    assert result.success
    assert {(c.row, c.col) for c in result.cleared_cells} == {(0, 0), (0, 1)}
    assert result.score_gained == 2 * 15
    assert result.board.grid.occupied[6, 6]
    assert result.board.is_in_sync()


def test_shuffle_draws_a_new_hand():
    hand = (make_piece("#"),)
    result = _engine().activate(PowerUpType.SHUFFLE, Board(8), hand, 3)
    assert result.success
    assert len(result.hand) == 3
    assert hand[0].id not in {p.id for p in result.hand}
    assert result.board is None


def test_wild_piece_is_appended_to_hand():
    hand = (make_piece("##"), make_piece("#"))
    result = _engine().activate("wildPiece", Board(8), hand, 3)
    assert result.success
    assert result.hand[:2] == hand
    assert result.hand[2].is_wild
    assert len(result.hand) == 3


def test_color_bomb_clears_colorless_blocks():
    data = Board(8).to_dict()
    data["cells"][9] = {"row": 1, "col": 1, "occupied": True}
    board = Board.from_dict(data)

    result = _engine().color_bomb(board)
    assert result.success
    assert [(c.row, c.col, c.color) for c in result.cleared_cells] == [(1, 1, None)]
    assert result.board.is_empty()
    assert result.board.is_in_sync()
