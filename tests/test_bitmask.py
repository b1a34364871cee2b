import numpy as np

from blockerino.game.bitmask import BitMask, cell_bit, col_masks, row_masks, shape_mask


def test_cell_bit_is_row_major():
    assert cell_bit(0, 0, 8) == 1
    assert cell_bit(0, 7, 8) == 1 << 7
    assert cell_bit(1, 0, 8) == 1 << 8
    assert cell_bit(9, 9, 10) == 1 << 99


def test_row_and_column_masks():
    assert row_masks(8)[0] == 0xFF
    assert row_masks(8)[7] == 0xFF << 56
    assert col_masks(8)[0] == sum(1 << (8 * r) for r in range(8))
    assert len(col_masks(10)) == 10


def test_shape_mask_offsets_by_column_and_row():
    shape = ((True, True), (True, False))
    mask = shape_mask(shape, 2, 1, 8)
    assert mask == cell_bit(1, 2, 8) | cell_bit(1, 3, 8) | cell_bit(2, 2, 8)


def test_from_occupancy_matches_grid_and_positions():
    occupied = np.zeros((10, 10), dtype=np.bool_)
    occupied[0, 3] = True
    occupied[9, 9] = True
    mask = BitMask.from_occupancy(occupied)

    assert mask.is_set(0, 3)
    assert mask.is_set(9, 9)
    assert not mask.is_set(5, 5)
    assert sorted(mask.positions()) == [(0, 3), (9, 9)]


def test_full_rows_and_cols():
    mask = BitMask(8, row_masks(8)[2] | col_masks(8)[5])
    assert mask.full_rows() == [2]
    assert mask.full_cols() == [5]
    assert BitMask(8).full_rows() == []
