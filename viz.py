from __future__ import annotations

import bisect
import logging
import os
from typing import List, Optional, Sequence, Tuple

import numpy as np
import cv2
import imageio.v2 as imageio

from utils import InvalidArgumentError, SeamLengthMismatchError, ensure_grayscale
from seams import VerticalSeam

logger = logging.getLogger(__name__)

SEAM_COLOR_BGR: Tuple[int, int, int] = (0, 0, 255)  # red


def _gray_to_bgr(im: np.ndarray) -> np.ndarray:
    """Grayscale array -> uint8 BGR copy."""
    if im.dtype != np.uint8:
        im = np.clip(im, 0, 255).astype(np.uint8)
    return cv2.cvtColor(im, cv2.COLOR_GRAY2BGR)


def _pad_to_size_bgr(img_bgr: np.ndarray, target_h: int, target_w: int) -> np.ndarray:
    """Pad BGR image to (target_h, target_w) with solid white (255,255,255)."""
    h, w = img_bgr.shape[:2]
    dh = max(0, target_h - h)
    dw = max(0, target_w - w)
    if dh == 0 and dw == 0:
        return img_bgr
    return cv2.copyMakeBorder(img_bgr, 0, dh, 0, dw, borderType=cv2.BORDER_CONSTANT, value=(255, 255, 255))


def draw_vertical_seams(
    im: np.ndarray,
    seams: Sequence[VerticalSeam],
    color: Tuple[int, int, int] = SEAM_COLOR_BGR,
) -> np.ndarray:
    """
    Paint every removed seam onto a BGR copy of the original (full-width) image.

    `seams` must be in the order they were removed. Each seam's columns are
    relative to the image as it was when that seam was removed, so they are
    mapped back to original columns: every earlier mark in the same row at or
    left of the running position pushes it one column to the right.
    """
    im = ensure_grayscale(im)
    h, w = im.shape
    out = _gray_to_bgr(im)

    # per row, original columns already painted (kept sorted)
    offsets: List[List[int]] = [[] for _ in range(h)]

    for n, seam in enumerate(seams):
        if len(seam) != h:
            raise SeamLengthMismatchError(
                f"seam {n} has length {len(seam)}, image height is {h}"
            )
        for y in range(h):
            x = seam.column_for_row(y)
            for o in offsets[y]:
                if o > x:
                    break
                x += 1
            if x >= w:
                raise InvalidArgumentError(
                    f"seam {n} maps row {y} to column {x}, outside width {w}"
                )
            out[y, x] = color
            bisect.insort(offsets[y], x)

    logger.debug("drew %d seam(s) on a %dx%d image", len(seams), w, h)
    return out


class VizGifRecorder:
    """
    GIF recorder for seam carving.

    - on_seam(im, seam): draws the seam about to be removed (red) on a BGR copy
      of the current image and stores an RGB frame.
    - Images only get narrower while carving, so every frame is padded on the
      right with white to the size of the first recorded frame.
    - close(): writes the animated GIF via imageio.
    """
    def __init__(self, gif_path: str, every: int = 1, max_frames: Optional[int] = None, fps: int = 12):
        self.gif_path = gif_path
        self.every = max(1, int(every))
        self.max_frames = max_frames if (max_frames is None or max_frames > 0) else None
        self.fps = max(1, int(fps))

        out_dir = os.path.dirname(os.path.abspath(gif_path))
        if out_dir and not os.path.exists(out_dir):
            os.makedirs(out_dir, exist_ok=True)

        self._frames: List[np.ndarray] = []   # RGB frames, all the same size
        self._step = 0
        self._target_hw: Optional[Tuple[int, int]] = None

    @property
    def frames(self) -> List[np.ndarray]:
        return list(self._frames)

    def on_seam(self, im: np.ndarray, seam: VerticalSeam) -> None:
        """Record a frame with `seam` drawn on the current grayscale image."""
        step = self._step
        self._step += 1
        if (step % self.every) != 0:
            return
        if self.max_frames is not None and len(self._frames) >= self.max_frames:
            return

        frame_bgr = draw_vertical_seams(im, [seam])
        if self._target_hw is None:
            self._target_hw = frame_bgr.shape[:2]

        frame_bgr = _pad_to_size_bgr(frame_bgr, *self._target_hw)
        self._frames.append(cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB))

    def close(self) -> None:
        """Write the animated GIF to disk (if any frames were recorded)."""
        if not self._frames:
            logger.info("No frames recorded, skipping %s", self.gif_path)
            return

        duration_sec = 1.0 / float(self.fps)
        imageio.mimsave(self.gif_path, self._frames, format="GIF", duration=duration_sec, loop=0)
        logger.info("Wrote %d frame(s) to %s", len(self._frames), self.gif_path)
