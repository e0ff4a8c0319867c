"""Separable Gaussian smoothing for weekday × time-of-day grids."""

from __future__ import annotations

import math

import numpy as np


def gaussian_kernel(sigma: float) -> np.ndarray:
    """Normalized kernel with radius ``ceil(3 * sigma)``."""
    radius = max(1, math.ceil(3 * sigma))
    offsets = np.arange(-radius, radius + 1, dtype=float)
    kernel = np.exp(-(offsets**2) / (2 * sigma * sigma))
    return kernel / kernel.sum()


def smooth(grid: np.ndarray, sigma_time: float, sigma_day: float) -> np.ndarray:
    """Blur along the time axis (wrapping) then the day axis (clamped).

    Values are not clamped afterwards; callers re-clamp to [0, 1].
    """
    result = np.array(grid, dtype=float, copy=True)
    if sigma_time > 0:
        result = _convolve_wrap_columns(result, gaussian_kernel(sigma_time))
    if sigma_day > 0:
        result = _convolve_clamp_rows(result, gaussian_kernel(sigma_day))
    return result


def _convolve_wrap_columns(grid: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    radius = len(kernel) // 2
    out = np.zeros_like(grid)
    for k in range(-radius, radius + 1):
        # rolled[:, x] == grid[:, (x + k) % width]
        out += kernel[k + radius] * np.roll(grid, -k, axis=1)
    return out


def _convolve_clamp_rows(grid: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    radius = len(kernel) // 2
    rows = np.arange(grid.shape[0])
    out = np.zeros_like(grid)
    for k in range(-radius, radius + 1):
        source = np.clip(rows + k, 0, grid.shape[0] - 1)
        out += kernel[k + radius] * grid[source, :]
    return out
