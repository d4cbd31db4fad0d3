from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

import cv2

from utils import Config, SeamCarvingError, configure_logging, prepare_mask, save_uint8
from ops import shrink_width_with_history
from viz import VizGifRecorder, draw_vertical_seams

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> dict:
    ap = argparse.ArgumentParser(description="Content-aware width reduction by vertical seam carving")

    ap.add_argument("-im", "--image", help="Path to input image (read as grayscale)", required=True)
    ap.add_argument("-out", "--output", help="Output image path", required=True)

    # Target size: either an absolute width or a number of columns to drop
    size = ap.add_mutually_exclusive_group(required=True)
    size.add_argument("--width", type=int, help="Target width in pixels")
    size.add_argument("--dx", type=int, help="Number of vertical seams to remove")

    ap.add_argument("--mask", "-mask", help="Path to protective mask (areas to avoid carving)")

    ap.add_argument(
        "--energy",
        choices=("sobel", "forward"),
        default="sobel",
        help="Energy function to use (default: sobel).",
    )

    ap.add_argument("--seams-out", help="Path to an image of the original with all removed seams drawn in red.")

    # Plan-only (dry run)
    ap.add_argument(
        "--plan-only",
        action="store_true",
        help="Print what would happen (energy, dims, seams, masks) and exit without processing.",
    )

    # Visualization (GIF)
    ap.add_argument("--viz-gif", help="Path to an output GIF that visualizes carved seams over time.")
    ap.add_argument("--viz-every", type=int, default=1, help="Record every N-th seam (default: 1 = every seam).")
    ap.add_argument("--viz-max-frames", type=int, default=0, help="Optional cap on recorded frames (0 = unlimited).")
    ap.add_argument("--viz-fps", type=int, default=12, help="GIF frames per second (default: 12).")

    ap.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")

    return vars(ap.parse_args(argv))


def validate_and_normalize_args(a: dict) -> dict:
    if a.get("dx") is not None and a["dx"] < 0:
        sys.exit("Error: --dx counts seams to remove and must be >= 0.")

    # Basic file checks
    if not os.path.exists(a["image"]):
        sys.exit(f"Error: Input image not found: {a['image']}")
    if a.get("mask") and not os.path.exists(a["mask"]):
        sys.exit(f"Error: Protective mask not found: {a['mask']}")

    # Ensure output directories exist
    for key in ("output", "seams_out", "viz_gif"):
        if a.get(key):
            out_dir = os.path.dirname(os.path.abspath(a[key]))
            if out_dir and not os.path.exists(out_dir):
                os.makedirs(out_dir, exist_ok=True)

    return a


def resolve_target_width(a: dict, W: int) -> int:
    if a.get("width") is not None:
        return int(a["width"])
    return W - int(a["dx"])


def print_plan(args: dict, cfg: Config, H: int, W: int, target_w: int, has_mask: bool) -> None:
    """Emit a deterministic, human-friendly plan and exit."""
    print("=== Seam Carving Plan ===")
    print(f"Energy:          {args['energy']}")
    print(f"Input size:      {W}x{H} (WxH)")
    print(f"Target size:     {target_w}x{H} (WxH)")
    print(f"Seams to remove: {W - target_w}")
    print(f"Protect mask:    {'yes' if has_mask else 'no'}")
    print(f"Seam overlay:    {args['seams_out'] or '(disabled)'}")

    if args.get("viz_gif"):
        cap = args["viz_max_frames"] if args["viz_max_frames"] > 0 else "unlimited"
        print(f"Visualization:   GIF -> {args['viz_gif']}  (every={args['viz_every']}, max_frames={cap}, fps={args['viz_fps']})")
    else:
        print("Visualization:   (disabled)")

    print("Plan-only:       No processing will be performed.")
    sys.exit(0)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args["log_level"])
    args = validate_and_normalize_args(args)

    # Read inputs
    im_u8 = cv2.imread(args["image"], cv2.IMREAD_GRAYSCALE)
    if im_u8 is None:
        sys.exit(f"Error: Could not read image at {args['image']}")
    mask_raw = cv2.imread(args["mask"], cv2.IMREAD_GRAYSCALE) if args.get("mask") else None

    cfg = Config(
        use_forward_energy=(args["energy"] == "forward"),
        energy_mask_const=100000,
        mask_threshold=10,
    )

    H, W = im_u8.shape[:2]
    target_w = resolve_target_width(args, W)
    if not 0 < target_w <= W:
        sys.exit(f"Error: target width must be in [1, {W}] for a {W}px wide image, got {target_w}.")

    if args["plan_only"]:
        print_plan(args, cfg, H, W, target_w, has_mask=mask_raw is not None)

    # Optional GIF recorder
    recorder = None
    if args.get("viz_gif"):
        max_frames = args["viz_max_frames"] if args["viz_max_frames"] > 0 else None
        recorder = VizGifRecorder(
            gif_path=args["viz_gif"],
            every=max(1, int(args["viz_every"])),
            max_frames=max_frames,
            fps=max(1, int(args["viz_fps"])),
        )

    try:
        mask_bool = prepare_mask(mask_raw, (H, W), cfg.mask_threshold, name="mask")
        output, history = shrink_width_with_history(
            im_u8, target_w, cfg, mask_bool,
            on_seam=(recorder.on_seam if recorder else None),
        )
    except SeamCarvingError as e:
        sys.exit(f"Error: {e}")

    save_uint8(args["output"], output)
    logger.info("Wrote %dx%d image to %s", output.shape[1], output.shape[0], args["output"])

    if args.get("seams_out"):
        save_uint8(args["seams_out"], draw_vertical_seams(im_u8, history))
        logger.info("Wrote seam overlay to %s", args["seams_out"])

    if recorder is not None:
        recorder.close()


if __name__ == "__main__":
    main()
