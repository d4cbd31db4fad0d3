"""Shared test fixtures for the seam carving test suite."""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def random_gray(rng):
    """24x32 uint8 noise image."""
    return rng.integers(0, 256, size=(24, 32), dtype=np.uint8)


def make_band_image(H=20, W=32, band=(10, 14), value=80, slope=8):
    """Horizontal ramp (x * slope) with a flat band of `value` over columns band[0]..band[1].

    Sobel energy is zero exactly on the band's interior columns
    (band[0]+1 .. band[1]-1) and positive everywhere else.
    """
    im = np.tile(np.arange(W, dtype=np.uint8) * slope, (H, 1))
    im[:, band[0]:band[1] + 1] = value
    return im
