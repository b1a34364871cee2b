import pytest

from blockerino.game.board import Board
from blockerino.game.errors import CorruptedSnapshot
from blockerino.game.grid import NO_COLOR
from blockerino.game.pieces import PALETTE, WILD_COLOR
from tests.helpers import fill, make_piece


def test_place_keeps_grid_and_mask_in_sync():
    board = Board(8)
    square = make_piece("##", "##")

    assert board.can_place(square, 0, 0)
    assert board.place(square, 0, 0) == 4
    assert board.is_in_sync()
    assert board.grid.filled_count() == 4
    assert not board.can_place(square, 0, 0)
    assert not board.can_place(square, 1, 1)
    assert board.can_place(square, 2, 0)


def test_can_place_is_idempotent_and_pure():
    board = fill(Board(8), [(0, 1), (3, 3)])
    before = board.clone()
    piece = make_piece("###")

    first = board.can_place(piece, 0, 0)
    second = board.can_place(piece, 0, 0)
    assert first is second is False
    assert board == before


def test_can_place_rejects_out_of_bounds():
    board = Board(8)
    bar = make_piece("####")
    assert board.can_place(bar, 4, 0)
    assert not board.can_place(bar, 5, 0)
    assert not board.can_place(bar, -1, 0)
    assert not board.can_place(make_piece("#", "#"), 0, 7)


def test_x_is_column_and_y_is_row():
    board = Board(8)
    board.place(make_piece("#"), 5, 2)
    assert board.grid.occupied[2, 5]
    assert board.mask.is_set(2, 5)


def test_single_row_clear():
    board = fill(Board(8), [(3, c) for c in range(7)])
    board.place(make_piece("#"), 7, 3)

    result = board.break_lines()
    assert result.line_count == 1
    assert result.rows == {3}
    assert len(result.cleared_cells) == 8
    assert board.is_empty()
    assert board.is_in_sync()


def test_row_and_column_clear_reports_intersection_once():
    cells = [(2, c) for c in range(8) if c != 5] + [(r, 5) for r in range(8) if r != 2]
    board = fill(Board(8), cells)
    board.place(make_piece("#"), 5, 2)

    result = board.break_lines()
    assert result.rows == {2}
    assert result.cols == {5}
    assert result.line_count == 2
    positions = [(cell.row, cell.col) for cell in result.cleared_cells]
    assert len(positions) == 15
    assert len(set(positions)) == 15
    assert board.is_empty()


def test_cleared_cells_keep_their_color():
    board = fill(Board(8), [(0, c) for c in range(7)], color=PALETTE[3])
    board.place(make_piece("#", color=PALETTE[5]), 7, 0)
    result = board.break_lines()
    colors = {(cell.col, cell.color) for cell in result.cleared_cells}
    assert (7, PALETTE[5]) in colors
    assert (0, PALETTE[3]) in colors


def test_break_lines_without_full_lines_is_noop():
    board = fill(Board(8), [(0, 0)])
    result = board.break_lines()
    assert result.line_count == 0
    assert result.cleared_cells == ()
    assert board.grid.filled_count() == 1


def test_preview_breaks_does_not_mutate():
    cells = [(2, c) for c in range(8) if c != 5] + [(r, 5) for r in range(8) if r != 2]
    board = fill(Board(8), cells)
    before = board.clone()

    preview = board.preview_breaks(make_piece("#"), 5, 2)
    assert preview.rows == {2}
    assert preview.cols == {5}
    assert board == before
    assert board.preview_breaks(make_piece("#"), 0, 2).line_count == 0


def test_no_valid_move_when_only_single_cell_free():
    board = fill(Board(8), [(r, c) for r in range(8) for c in range(8) if (r, c) != (0, 0)])
    assert not board.has_any_valid_move([make_piece("##")])
    assert board.has_any_valid_move([make_piece("##"), make_piece("#")])
    assert not board.has_any_valid_move([])


def test_shape_must_fit_even_when_region_is_large_enough():
    # Four free cells in a column cannot take a horizontal bar.
    board = fill(Board(8), [(r, c) for r in range(8) for c in range(8) if c != 0 or r > 3])
    assert board.largest_empty_region() == 4
    assert not board.has_any_valid_move([make_piece("####")])
    assert board.has_any_valid_move([make_piece("#", "#", "#", "#")])


def test_largest_empty_region():
    board = Board(8)
    assert board.largest_empty_region() == 64
    fill(board, [(r, 4) for r in range(8)])
    assert board.largest_empty_region() == 32


def test_valid_placements_lists_x_y_pairs():
    board = fill(Board(8), [(r, c) for r in range(8) for c in range(8) if (r, c) != (6, 1)])
    assert board.valid_placements(make_piece("#")) == [(1, 6)]


def test_most_common_color_prefers_count_then_palette_order():
    board = fill(Board(8), [(0, 0), (0, 1)], color=PALETTE[2])
    fill(board, [(1, 0)], color=PALETTE[0])
    assert board.most_common_color() == PALETTE[2]

    tied = fill(Board(8), [(0, 0)], color=WILD_COLOR)
    fill(tied, [(5, 5)], color=PALETTE[4])
    assert tied.most_common_color() == PALETTE[4]
    assert Board(8).most_common_color() is None


def test_clear_cells_skips_empty_cells():
    board = fill(Board(8), [(1, 1)])
    cleared = board.clear_cells([(1, 1), (2, 2)])
    assert [(c.row, c.col) for c in cleared] == [(1, 1)]
    assert board.is_empty()
    assert board.is_in_sync()


def test_clone_is_independent():
    board = Board(8)
    copy = board.clone()
    copy.place(make_piece("#"), 0, 0)
    assert board.is_empty()
    assert not copy.is_empty()


def test_density():
    board = fill(Board(10), [(0, c) for c in range(10)])
    assert board.density() == pytest.approx(0.1)


def test_board_dict_round_trip_recomputes_mask():
    board = fill(Board(8), [(0, 0), (7, 7)], color=PALETTE[1])
    data = board.to_dict()
    restored = Board.from_dict(data)
    assert restored == board
    assert restored.is_in_sync()
    assert data["cells"][0] == {"row": 0, "col": 0, "occupied": True, "color": PALETTE[1]}
    assert data["cells"][1] == {"row": 0, "col": 1, "occupied": False}


def test_board_from_dict_rejects_bad_data():
    data = Board(8).to_dict()
    with pytest.raises(CorruptedSnapshot):
        Board.from_dict(data, expected_size=10)
    with pytest.raises(CorruptedSnapshot):
        Board.from_dict({"size": 8, "cells": data["cells"][:10]})
    with pytest.raises(CorruptedSnapshot):
        Board.from_dict({"size": 8})
    with pytest.raises(CorruptedSnapshot):
        Board.from_dict({"size": 8, "cells": 5})


@pytest.mark.parametrize("color", [2**70, -1, 0x100000000, "red"])
def test_board_from_dict_rejects_out_of_range_colors(color):
    data = Board(8).to_dict()
    data["cells"][5] = {"row": 0, "col": 5, "occupied": True, "color": color}
    with pytest.raises(CorruptedSnapshot):
        Board.from_dict(data)


def test_colorless_blocks_count_as_their_own_color():
    board = fill(Board(8), [(0, 0), (4, 4)], color=None)
    assert not board.is_empty()
    assert board.most_common_color() == NO_COLOR

    fill(board, [(7, 7)], color=PALETTE[1])
    fill(board, [(6, 6)], color=PALETTE[1])
    # Colorless loses ties.
    assert board.most_common_color() == PALETTE[1]
