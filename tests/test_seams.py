"""Tests for path-energy accumulation, seam tracing and seam removal."""

import numpy as np
import pytest

import seams
from energy import sobel_energy
from seams import (
    VerticalSeam,
    accumulate_path_energy,
    as_bool_mask,
    energy_grid,
    find_vertical_seam,
    remove_vertical_seam,
    trace_seam,
)
from utils import Config, InvalidArgumentError, SeamLengthMismatchError

from conftest import make_band_image


def assert_valid_seam(seam, H, W):
    assert len(seam) == H
    cols = np.array(seam.columns)
    assert cols.min() >= 0 and cols.max() < W
    assert np.abs(np.diff(cols)).max(initial=0) <= 1


class TestVerticalSeam:
    def test_columns_are_bottom_row_first(self):
        seam = VerticalSeam((4, 3, 2))
        assert seam.column_for_row(2) == 4  # bottom row
        assert seam.column_for_row(0) == 2  # top row
        assert seam.row_columns().tolist() == [2, 3, 4]

    def test_accepts_numpy_integers(self):
        seam = VerticalSeam(tuple(np.array([1, 1, 0], dtype=np.int64)))
        assert seam.columns == (1, 1, 0)
        assert all(type(c) is int for c in seam.columns)

    def test_rejects_disconnected_path(self):
        with pytest.raises(InvalidArgumentError):
            VerticalSeam((0, 2, 2))

    def test_rejects_negative_column(self):
        with pytest.raises(InvalidArgumentError):
            VerticalSeam((0, -1))

    def test_rejects_empty(self):
        with pytest.raises(InvalidArgumentError):
            VerticalSeam(())

    def test_equal_seams_compare_equal(self):
        assert VerticalSeam((1, 2, 2)) == VerticalSeam([1, 2, 2])


class TestEnergyGrid:
    def test_copies_and_converts_to_int64(self):
        raw = np.array([[1, 2], [3, 4]], dtype=np.uint8)
        grid = energy_grid(raw)
        assert grid.dtype == np.int64
        grid[0, 0] = 99
        assert raw[0, 0] == 1

    def test_rounds_float_input(self):
        grid = energy_grid(np.array([[0.4, 1.6]]))
        assert grid.tolist() == [[0, 2]]

    def test_rejects_negative_energy(self):
        with pytest.raises(InvalidArgumentError):
            energy_grid(np.array([[1, -1]]))


class TestAccumulatePathEnergy:
    def test_three_by_three_scenario(self):
        raw = np.array([[1, 5, 1],
                        [1, 1, 1],
                        [5, 1, 1]])
        acc = accumulate_path_energy(raw)
        assert acc.tolist() == [[1, 5, 1],
                                [2, 2, 2],
                                [7, 3, 3]]

    def test_first_row_untouched(self):
        raw = np.array([[7, 0, 3, 9], [1, 1, 1, 1]])
        acc = accumulate_path_energy(raw)
        assert acc[0].tolist() == [7, 0, 3, 9]

    def test_edges_only_look_at_in_bounds_neighbours(self):
        raw = np.array([[0, 9, 9, 0],
                        [1, 1, 1, 1]])
        acc = accumulate_path_energy(raw)
        # column 1 can reach the 0 at column 0; column 2 the 0 at column 3
        assert acc[1].tolist() == [1, 1, 1, 1]

    def test_does_not_mutate_input(self):
        raw = np.array([[1, 2], [3, 4]], dtype=np.int64)
        before = raw.copy()
        accumulate_path_energy(raw)
        assert np.array_equal(raw, before)

    def test_single_row_is_a_copy(self):
        raw = np.array([[4, 2, 8]])
        acc = accumulate_path_energy(raw)
        assert acc.tolist() == [[4, 2, 8]]

    def test_matches_brute_force_on_random_grid(self, rng):
        raw = rng.integers(0, 50, size=(12, 9))
        acc = accumulate_path_energy(raw)
        expected = raw.astype(np.int64).copy()
        H, W = raw.shape
        for y in range(1, H):
            for x in range(W):
                expected[y, x] += expected[y - 1, max(0, x - 1):min(W, x + 2)].min()
        assert np.array_equal(acc, expected)

    def test_single_column_rejected(self):
        with pytest.raises(InvalidArgumentError):
            accumulate_path_energy(np.array([[1], [2]]))


class TestTraceSeam:
    def test_three_by_three_scenario(self):
        acc = np.array([[1, 5, 1],
                        [2, 2, 2],
                        [7, 3, 3]])
        assert trace_seam(acc).columns == (1, 1, 0)

    def test_bottom_row_tie_takes_leftmost(self):
        acc = np.array([[0, 0, 0, 0],
                        [4, 1, 1, 4]])
        assert trace_seam(acc).columns == (1, 1)

    def test_three_way_tie_stays_up(self):
        acc = np.array([[2, 2, 2],
                        [5, 0, 5]])
        assert trace_seam(acc).columns == (1, 1)

    def test_up_right_equal_to_up_does_not_win(self):
        acc = np.array([[3, 2, 2],
                        [5, 0, 5]])
        assert trace_seam(acc).columns == (1, 1)

    def test_up_right_strictly_smaller_wins(self):
        acc = np.array([[3, 2, 1],
                        [5, 0, 5]])
        assert trace_seam(acc).columns == (1, 2)

    def test_up_left_and_up_right_tie_goes_left(self):
        acc = np.array([[1, 5, 1],
                        [5, 0, 5]])
        assert trace_seam(acc).columns == (1, 0)

    def test_up_right_compared_against_up_not_the_row_below(self):
        acc = np.array([[9, 1, 2],
                        [20, 10, 20]])
        assert trace_seam(acc).columns == (1, 1)

    def test_follows_diagonal_valley(self):
        H, W = 10, 14
        raw = np.full((H, W), 10)
        for y in range(H):
            raw[y, 2 + y] = 0
        seam = trace_seam(accumulate_path_energy(raw))
        for y in range(H):
            assert seam.column_for_row(y) == 2 + y

    def test_single_row(self):
        assert trace_seam(np.array([[3, 1, 1]])).columns == (1,)

    def test_single_column_rejected(self):
        with pytest.raises(InvalidArgumentError):
            trace_seam(np.array([[0], [0]]))


class TestFindVerticalSeam:
    def test_seam_is_valid(self, random_gray):
        seam = find_vertical_seam(random_gray)
        assert_valid_seam(seam, *random_gray.shape)

    def test_follows_flat_band(self):
        im = make_band_image(H=20, W=32, band=(10, 14))
        seam = find_vertical_seam(im)
        assert seam.columns == (11,) * 20

    def test_deterministic(self, random_gray):
        assert find_vertical_seam(random_gray) == find_vertical_seam(random_gray)

    def test_two_columns(self):
        im = np.array([[0, 255], [255, 0], [0, 0]], dtype=np.uint8)
        assert_valid_seam(find_vertical_seam(im), 3, 2)

    def test_one_column_rejected(self):
        with pytest.raises(InvalidArgumentError):
            find_vertical_seam(np.zeros((5, 1), dtype=np.uint8))

    def test_color_image_rejected(self):
        with pytest.raises(InvalidArgumentError):
            find_vertical_seam(np.zeros((5, 5, 3), dtype=np.uint8))

    def test_mask_pushes_seam_away(self):
        im = make_band_image(H=20, W=32, band=(10, 14))
        mask = np.zeros(im.shape, dtype=bool)
        mask[:, 10:15] = True
        seam = find_vertical_seam(im, mask=mask)
        assert not any(10 <= c <= 14 for c in seam.columns)

    def test_mask_shape_mismatch(self, random_gray):
        with pytest.raises(InvalidArgumentError):
            find_vertical_seam(random_gray, mask=np.zeros((3, 3), dtype=bool))

    @pytest.mark.parametrize("on_value", [1, 255])
    def test_uint8_mask_protects_like_bool(self, on_value):
        """Non-bool masks are read as on/off, never as row indices."""
        im = make_band_image(H=20, W=32, band=(10, 14))
        mask = np.zeros(im.shape, dtype=np.uint8)
        mask[:, 10:15] = on_value
        seam = find_vertical_seam(im, mask=mask)
        assert not any(10 <= c <= 14 for c in seam.columns)
        assert seam == find_vertical_seam(im, mask=mask.astype(bool))

    def test_color_mask_rejected_by_name(self, random_gray):
        with pytest.raises(InvalidArgumentError, match="mask"):
            find_vertical_seam(random_gray, mask=np.zeros(random_gray.shape + (3,), dtype=np.uint8))

    def test_energy_grid_built_once(self, random_gray, monkeypatch):
        calls = []
        real = seams.energy_grid

        def counting(gradients):
            calls.append(1)
            return real(gradients)

        monkeypatch.setattr(seams, "energy_grid", counting)
        seam = find_vertical_seam(random_gray)
        assert len(calls) == 1
        assert seam == trace_seam(accumulate_path_energy(real(sobel_energy(random_gray))))


class TestAsBoolMask:
    def test_nonzero_is_protected(self):
        mask = as_bool_mask(np.array([[0, 1, 255]], dtype=np.uint8), (1, 3))
        assert mask.dtype == np.bool_
        assert mask.tolist() == [[False, True, True]]

    def test_bool_passes_through(self):
        mask = np.array([[True, False]])
        assert as_bool_mask(mask, (1, 2)) is mask

    def test_shape_mismatch(self):
        with pytest.raises(InvalidArgumentError):
            as_bool_mask(np.zeros((2, 2), dtype=bool), (2, 3))

    def test_forward_energy_seam_is_valid(self, random_gray):
        seam = find_vertical_seam(random_gray, Config(use_forward_energy=True))
        assert_valid_seam(seam, *random_gray.shape)


class TestRemoveVerticalSeam:
    def test_preserves_non_seam_pixels(self):
        H, W = 4, 10
        im = np.tile(np.arange(W), (H, 1))
        carved = remove_vertical_seam(im, VerticalSeam((5,) * H))
        assert carved.shape == (H, W - 1)
        assert carved[0].tolist() == [0, 1, 2, 3, 4, 6, 7, 8, 9]

    def test_uses_bottom_to_top_order(self):
        im = np.tile(np.arange(6), (3, 1))
        # bottom row loses column 2, middle row 3, top row 4
        carved = remove_vertical_seam(im, VerticalSeam((2, 3, 4)))
        assert carved[0].tolist() == [0, 1, 2, 3, 5]
        assert carved[1].tolist() == [0, 1, 2, 4, 5]
        assert carved[2].tolist() == [0, 1, 3, 4, 5]

    def test_traced_seam_keeps_row_order(self, random_gray):
        seam = find_vertical_seam(random_gray)
        carved = remove_vertical_seam(random_gray, seam)
        H, W = random_gray.shape
        assert carved.shape == (H, W - 1)
        for y in range(H):
            x = seam.column_for_row(y)
            assert np.array_equal(carved[y], np.delete(random_gray[y], x))

    def test_color_image(self):
        im = np.arange(2 * 3 * 3).reshape(2, 3, 3)
        carved = remove_vertical_seam(im, VerticalSeam((0, 1)))
        assert carved.shape == (2, 2, 3)
        assert np.array_equal(carved[0], im[0, [0, 2]])
        assert np.array_equal(carved[1], im[1, [1, 2]])

    def test_input_unchanged(self, random_gray):
        before = random_gray.copy()
        remove_vertical_seam(random_gray, find_vertical_seam(random_gray))
        assert np.array_equal(random_gray, before)

    def test_length_mismatch(self):
        with pytest.raises(SeamLengthMismatchError):
            remove_vertical_seam(np.zeros((3, 4)), VerticalSeam((0, 0)))

    def test_width_one_rejected(self):
        with pytest.raises(InvalidArgumentError):
            remove_vertical_seam(np.zeros((2, 1)), VerticalSeam((0, 0)))

    def test_column_out_of_range(self):
        with pytest.raises(InvalidArgumentError):
            remove_vertical_seam(np.zeros((2, 3)), VerticalSeam((3, 2)))
