from __future__ import annotations
import logging
from typing import Callable, List, Optional, Tuple

import numpy as np

from utils import Config, DegenerateImageError, InvalidArgumentError, ensure_grayscale
from seams import VerticalSeam, as_bool_mask, find_vertical_seam, remove_vertical_seam

logger = logging.getLogger(__name__)

# Type alias: on_seam(current_image, seam) -> None
OnSeam = Optional[Callable[[np.ndarray, VerticalSeam], None]]


def seams_removal(
    im: np.ndarray,
    num_remove: int,
    cfg: Config,
    mask: Optional[np.ndarray] = None,
    on_seam: OnSeam = None
) -> Tuple[np.ndarray, Optional[np.ndarray], List[VerticalSeam]]:
    """
    Remove `num_remove` vertical seams one at a time.

    Each seam is searched on the image left by the previous removal.
    `on_seam` is called before each removal with the current image.
    Returns the narrowed image, the narrowed mask and the seams in removal order.
    """
    if mask is not None:
        mask = as_bool_mask(mask, np.shape(im)[:2])

    history: List[VerticalSeam] = []
    for step in range(int(num_remove)):
        seam = find_vertical_seam(im, cfg, mask)
        if on_seam is not None:
            on_seam(im, seam)
        im = remove_vertical_seam(im, seam)
        if mask is not None:
            mask = remove_vertical_seam(mask, seam)
        history.append(seam)
        logger.debug("removed seam %d/%d, width now %d", step + 1, num_remove, im.shape[1])
    return im, mask, history


def shrink_width_with_history(
    im: np.ndarray,
    target_width: int,
    cfg: Optional[Config] = None,
    mask: Optional[np.ndarray] = None,
    on_seam: OnSeam = None
) -> Tuple[np.ndarray, List[VerticalSeam]]:
    """Like shrink_width, but also return the removed seams in removal order."""
    cfg = cfg or Config()
    im = ensure_grayscale(im)
    h, w = im.shape
    target_width = int(target_width)

    if target_width > w:
        raise InvalidArgumentError(
            f"target_width must be <= input image width ({target_width} > {w})"
        )
    if target_width < 0:
        raise InvalidArgumentError(f"target_width must be non-negative, got {target_width}")
    if target_width < 1:
        raise DegenerateImageError("shrinking to width 0 would leave an empty image")

    if mask is not None:
        mask = as_bool_mask(mask, im.shape)

    num_remove = w - target_width
    logger.info("Shrinking %dx%d (WxH) to width %d: %d seam(s)", w, h, target_width, num_remove)

    output, _, history = seams_removal(im.copy(), num_remove, cfg, mask, on_seam=on_seam)
    return output, history


def shrink_width(
    im: np.ndarray,
    target_width: int,
    cfg: Optional[Config] = None,
    mask: Optional[np.ndarray] = None,
    on_seam: OnSeam = None
) -> np.ndarray:
    """Seam-carve a grayscale image down to `target_width` columns."""
    output, _ = shrink_width_with_history(im, target_width, cfg, mask, on_seam)
    return output
