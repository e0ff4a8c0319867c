from __future__ import annotations

import math

import numpy as np
import pytest

from vrcx_predictor.smoothing import gaussian_kernel, smooth


@pytest.mark.parametrize("sigma", [0.1, 0.6, 1.0, 1.2, 2.5, 7.0])
def test_kernel_sums_to_one(sigma):
    kernel = gaussian_kernel(sigma)
    assert kernel.sum() == pytest.approx(1.0)
    assert len(kernel) == 2 * max(1, math.ceil(3 * sigma)) + 1
    assert np.argmax(kernel) == len(kernel) // 2


def test_non_positive_sigma_skips_axis():
    grid = np.random.default_rng(1).random((7, 96))
    out = smooth(grid, 0.0, -1.0)
    np.testing.assert_array_equal(out, grid)
    assert out is not grid


def test_time_axis_wraps_around_midnight():
    grid = np.zeros((7, 96))
    grid[2, 0] = 1.0
    out = smooth(grid, 1.2, 0.0)
    assert out[2, 95] > 0
    assert out[2, 95] == pytest.approx(out[2, 1])
    assert out[2].sum() == pytest.approx(1.0)
    assert not out[1].any()
    assert not out[3].any()


def test_day_axis_is_clamped_not_cyclic():
    grid = np.zeros((7, 4))
    grid[0, :] = 1.0
    out = smooth(grid, 0.0, 0.6)
    assert out[1, 0] > 0
    assert out[6, 0] == 0.0
    # Rows beyond the edge reuse row 0, so it keeps more than the center weight.
    assert out[0, 0] > gaussian_kernel(0.6).max()


def test_smoothing_does_not_modify_input():
    grid = np.zeros((7, 24))
    grid[3, 12] = 1.0
    smooth(grid, 1.2, 0.6)
    assert grid.sum() == 1.0
