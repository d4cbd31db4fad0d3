from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numba import njit

from utils import (
    Config,
    InvalidArgumentError,
    SeamLengthMismatchError,
    ensure_grayscale,
)
from energy import get_energy_fn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerticalSeam:
    """
    One column index per image row, ordered from the BOTTOM row to the TOP row.

    columns[0] is the column in row H-1 and columns[-1] the column in row 0,
    so row y lives at columns[H - 1 - y]. Use column_for_row / row_columns
    instead of indexing by hand.
    """
    columns: Tuple[int, ...]

    def __post_init__(self) -> None:
        cols = tuple(int(c) for c in self.columns)
        if not cols:
            raise InvalidArgumentError("a seam needs at least one row")
        if min(cols) < 0:
            raise InvalidArgumentError(f"seam has a negative column: {cols}")
        for a, b in zip(cols, cols[1:]):
            if abs(a - b) > 1:
                raise InvalidArgumentError(
                    f"seam is not 8-connected: jump from column {a} to {b}"
                )
        object.__setattr__(self, "columns", cols)

    def __len__(self) -> int:
        return len(self.columns)

    def column_for_row(self, y: int) -> int:
        """Column removed from row y (row 0 is the top of the image)."""
        return self.columns[len(self.columns) - 1 - y]

    def row_columns(self) -> np.ndarray:
        """Columns as an int64 array indexed by row (top row first)."""
        return np.array(self.columns[::-1], dtype=np.int64)


# ==========================
# Numba-compiled DP helpers
# ==========================
@njit(cache=True)
def _dp_accumulate(M: np.ndarray) -> None:
    """
    In-place DP accumulation of an int64 HxW grid (row 0 is left as is).
    Afterwards M[i, j] is the cheapest 8-connected path cost from row 0 to (i, j).
    """
    h, w = M.shape
    for i in range(1, h):
        for j in range(w):
            best = M[i - 1, j]
            if j > 0 and M[i - 1, j - 1] < best:
                best = M[i - 1, j - 1]
            if j < w - 1 and M[i - 1, j + 1] < best:
                best = M[i - 1, j + 1]
            M[i, j] += best


@njit(cache=True)
def _dp_retrace(M: np.ndarray) -> np.ndarray:
    """
    Walk an accumulated grid from the cheapest bottom-row cell up to row 0.
    Returns the visited columns, bottom row first.
    Ties go left: up-left and up-right only win when strictly smaller.
    """
    h, w = M.shape
    seam = np.empty(h, dtype=np.int64)

    # argmin on the last row, first occurrence wins
    j = 0
    min_val = M[h - 1, 0]
    for k in range(1, w):
        if M[h - 1, k] < min_val:
            min_val = M[h - 1, k]
            j = k
    seam[0] = j

    for n in range(1, h):
        i = h - 1 - n
        best_j = j
        best = M[i, j]
        if j > 0 and M[i, j - 1] < best:
            best_j = j - 1
            best = M[i, j - 1]
        if j < w - 1 and M[i, j + 1] < best:
            best_j = j + 1
            best = M[i, j + 1]
        j = best_j
        seam[n] = j
    return seam


# =======================
# CORE DP / SEAM SEARCH
# =======================
def energy_grid(gradients: np.ndarray) -> np.ndarray:
    """Copy a gradient-magnitude map into a fresh int64 working grid."""
    grid = np.asarray(gradients)
    if grid.ndim != 2:
        raise InvalidArgumentError(f"energy grid must be 2D, got shape {grid.shape}")
    if not np.issubdtype(grid.dtype, np.integer):
        grid = np.rint(grid)
    grid = np.array(grid, dtype=np.int64)
    if grid.size and grid.min() < 0:
        raise InvalidArgumentError("energy values must be non-negative")
    return grid


def _check_grid_dims(grid: np.ndarray) -> None:
    h, w = grid.shape
    if w < 2:
        raise InvalidArgumentError(f"Cannot find seams if image width is < 2 (width={w})")
    if h < 1:
        raise InvalidArgumentError("Cannot find seams in an image with no rows")


def as_bool_mask(mask: np.ndarray, shape_hw: Tuple[int, int]) -> np.ndarray:
    """Protective mask as bool HxW; any non-zero value counts as protected."""
    mask = ensure_grayscale(mask, name="mask")
    if mask.shape != tuple(shape_hw):
        raise InvalidArgumentError(
            f"mask shape {mask.shape} does not match image shape {tuple(shape_hw)}"
        )
    if mask.dtype != np.bool_:
        mask = mask.astype(np.bool_)
    return mask


def accumulate_path_energy(grid: np.ndarray) -> np.ndarray:
    """
    Turn per-pixel energy into cumulative minimal path energy from the top.

    The input is not modified; a new int64 grid is returned.
    """
    M = energy_grid(grid)
    _check_grid_dims(M)
    _dp_accumulate(M)
    return M


def trace_seam(accumulated: np.ndarray) -> VerticalSeam:
    """Retrace the minimal seam through a fully accumulated energy grid."""
    M = np.ascontiguousarray(accumulated, dtype=np.int64)
    if M.ndim != 2:
        raise InvalidArgumentError(f"energy grid must be 2D, got shape {M.shape}")
    _check_grid_dims(M)
    return VerticalSeam(tuple(_dp_retrace(M)))


def find_vertical_seam(
    im: np.ndarray,
    cfg: Optional[Config] = None,
    mask: Optional[np.ndarray] = None,
) -> VerticalSeam:
    """
    Find the 8-connected bottom-to-top path with minimal total energy.

    Energy comes from the operator selected by `cfg`; pixels where `mask`
    is non-zero get cfg.energy_mask_const so seams steer around them.
    """
    cfg = cfg or Config()
    im = ensure_grayscale(im)
    _check_grid_dims(im)

    M = energy_grid(get_energy_fn(cfg)(im))
    if M.shape != im.shape:
        raise InvalidArgumentError(
            f"energy map shape {M.shape} does not match image shape {im.shape}"
        )
    if mask is not None:
        M[as_bool_mask(mask, im.shape)] = cfg.energy_mask_const

    # M is already a private int64 copy
    _dp_accumulate(M)
    seam = trace_seam(M)
    logger.debug("seam found: start column %d, energy %d",
                 seam.columns[0], M[-1, seam.columns[0]])
    return seam


# ==============
# SEAM REMOVAL
# ==============
def seam_boolmask(seam: VerticalSeam, shape_hw: Tuple[int, int]) -> np.ndarray:
    """Bool HxW mask where False marks the seam pixels."""
    h, w = shape_hw
    boolmask = np.ones((h, w), dtype=np.bool_)
    boolmask[np.arange(h), seam.row_columns()] = False
    return boolmask


def remove_vertical_seam(im: np.ndarray, seam: VerticalSeam) -> np.ndarray:
    """
    Return a copy of `im` one column narrower, with `seam` cut out.

    Pixels left of the seam keep their column, pixels right of it move left
    by one. Works on (H, W) and (H, W, C) arrays of any dtype; `im` is not
    modified.
    """
    im = np.asarray(im)
    if im.ndim not in (2, 3):
        raise InvalidArgumentError(f"expected an (H, W) or (H, W, C) array, got shape {im.shape}")
    h, w = im.shape[:2]
    if len(seam) != h:
        raise SeamLengthMismatchError(
            f"seam length {len(seam)} does not match image height {h}"
        )
    if w < 2:
        raise InvalidArgumentError(f"Cannot remove a seam from an image of width {w}")
    if max(seam.columns) >= w:
        raise InvalidArgumentError(
            f"seam column {max(seam.columns)} is outside an image of width {w}"
        )

    boolmask = seam_boolmask(seam, (h, w))
    return im[boolmask].reshape((h, w - 1) + im.shape[2:])
