"""
Energy functions for seam carving.

This module provides the per-pixel energy maps consumed by the
dynamic-programming seam search:
  - sobel_energy: Sobel gradient magnitude (backward) energy.
  - forward_energy: forward-looking energy that estimates disruption cost.

Notes:
  - Inputs are 2D grayscale arrays (uint8 from I/O, any numeric dtype works).
  - Outputs are non-negative int64 grids of the same shape, which is what
    the seam search accumulates.
  - The caller chooses which energy to use through Config (get_energy_fn).
"""

from __future__ import annotations
from typing import Callable, Optional

import numpy as np
from scipy import ndimage as ndi

from utils import Config, ensure_grayscale

EnergyFn = Callable[[np.ndarray], np.ndarray]


def sobel_energy(im: np.ndarray) -> np.ndarray:
    """
    Sobel gradient magnitude of a grayscale image.
    Borders are handled by clamping to the nearest edge pixel.
    Output: int64 HxW, rounded magnitude.
    """
    gray = ensure_grayscale(im).astype(np.float64)

    xgrad = ndi.sobel(gray, axis=1, mode='nearest')
    ygrad = ndi.sobel(gray, axis=0, mode='nearest')
    return np.rint(np.hypot(xgrad, ygrad)).astype(np.int64)


def forward_energy(im: np.ndarray) -> np.ndarray:
    """
    Forward energy algorithm as described in
    "Improved Seam Carving for Video Retargeting" (Rubinstein, Shamir, Avidan).
    Returns per-pixel cost of removing a vertical seam through that pixel.
    """
    gray = ensure_grayscale(im).astype(np.int64)
    h, w = gray.shape

    energy = np.zeros((h, w), dtype=np.int64)
    m = np.zeros((h, w), dtype=np.int64)

    U = np.roll(gray, 1, axis=0)
    L = np.roll(gray, 1, axis=1)
    R = np.roll(gray, -1, axis=1)

    cU = np.abs(R - L)
    cL = np.abs(U - L) + cU
    cR = np.abs(U - R) + cU

    cols = np.arange(w)
    for i in range(1, h):
        mU = m[i - 1]
        mL = np.roll(mU, 1)
        mR = np.roll(mU, -1)

        cULR = np.array([cU[i], cL[i], cR[i]])  # (3, w)
        mULR = np.array([mU, mL, mR]) + cULR

        argmins = np.argmin(mULR, axis=0)
        m[i] = mULR[argmins, cols]
        energy[i] = cULR[argmins, cols]

    return energy


def get_energy_fn(cfg: Optional[Config] = None) -> EnergyFn:
    """Pick the energy operator configured in `cfg` (Sobel by default)."""
    cfg = cfg or Config()
    return forward_energy if cfg.use_forward_energy else sobel_energy
