"""
Utilities and configuration for the seam-carving project.

This module defines:
  - Config: Immutable dataclass storing configuration for the energy
    operator and protective-mask constants.
  - The error hierarchy raised by the carving operations.
  - Lightweight helpers for grayscale validation, mask preparation,
    image saving and logging setup.

Design notes:
  - I/O uses uint8 (OpenCV). The seam search works on int64 energy grids.
  - Masks are validated and converted once to bool (True = protected).
"""

from __future__ import annotations
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class Config:
    """Immutable configuration container for the seam-carving algorithm."""
    use_forward_energy: bool = False
    energy_mask_const: int = 100000
    mask_threshold: int = 10


class SeamCarvingError(Exception):
    """Base class for all seam-carving failures."""


class InvalidArgumentError(SeamCarvingError, ValueError):
    """An argument violates a precondition (bad width, bad seam, bad shape)."""


class SeamLengthMismatchError(SeamCarvingError, ValueError):
    """A seam does not have exactly one entry per image row."""


class DegenerateImageError(SeamCarvingError, RuntimeError):
    """Shrinking would leave an image with no columns."""


def ensure_grayscale(im: np.ndarray, name: str = "image") -> np.ndarray:
    """Return `im` as a 2D array, raising if it is not a grayscale grid."""
    im = np.asarray(im)
    if im.ndim != 2:
        raise InvalidArgumentError(
            f"{name} must be a 2D grayscale array, got shape {im.shape}"
        )
    return im


def save_uint8(path: str, img: np.ndarray) -> None:
    """Save an image to disk as uint8, clipping to [0, 255] if needed."""
    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)
    ok = cv2.imwrite(path, img)
    if not ok:
        raise RuntimeError(f"Failed to write image to: {path}")


def prepare_mask(
    mask_img: Optional[np.ndarray],
    shape_hw: Tuple[int, int],
    threshold: int,
    name: str = "mask",
) -> Optional[np.ndarray]:
    """Validate and binarize a mask image into a boolean array.

    Ensures the mask matches the working image size, converts to grayscale
    if needed, and thresholds it once to produce a bool array. Boolean
    masks are only shape-checked.

    Returns:
        Boolean mask array of shape (H, W) or None if no mask is provided.
    """
    if mask_img is None:
        return None

    mask_img = np.asarray(mask_img)
    if mask_img.ndim == 3:
        mask_img = cv2.cvtColor(mask_img, cv2.COLOR_BGR2GRAY)

    mh, mw = mask_img.shape[:2]
    if (mh, mw) != tuple(shape_hw):
        raise InvalidArgumentError(
            f"{name} size mismatch: expected {tuple(shape_hw)}, got {(mh, mw)}"
        )

    if mask_img.dtype == np.bool_:
        return mask_img.copy()
    if mask_img.dtype != np.uint8:
        mask_img = mask_img.astype(np.int32)
    return mask_img > int(threshold)


def configure_logging(level: str = "INFO") -> None:
    """Route log records to stdout as bare messages."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stdout,
    )
