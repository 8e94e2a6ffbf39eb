"""Vectorize a signature image into SVG (and optionally YAML) strokes.

Runs the full pipeline on one image:
    1. Load the image (Pillow) into a gray + alpha buffer
    2. Build the vectorizer config: YAML (--config) first, then CLI flags
    3. vectorize(): binarize → cleanup → isolate → thin → trace → refine
    4. Save the strokes as SVG (always) and signature_path.v1 YAML (--yaml)

CLI:
    signature-analyze --input scan.png
    signature-analyze -i scan.png -o out/sig.svg --yaml out/sig.yaml
    signature-analyze -i photo.jpg --rotate -90 --threshold 140 --close-radius 1
    signature-analyze -i scan.png --config configs/signature_vectorizer_v1.yaml \\
                      --save-cleaned out/skeleton.png --log-level DEBUG

Exit codes:
    0 on success (including an empty result), 1 on configuration or input
    errors.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from ..errors import ConfigurationError, InputError
from ..utils import validators
from ..utils.logging_config import install_excepthook, push_context, setup_logging
from ..vectorizer import load_pixel_buffer, vectorize

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signature-analyze",
        description="Turn a signature image into ordered vector strokes (SVG path markup)",
    )

    # Paths
    parser.add_argument("--input", "-i", type=Path, required=True, help="Source image (PNG/JPEG/...)")
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output SVG (default: input path with .svg suffix)",
    )
    parser.add_argument("--yaml", type=Path, default=None, help="Also write a signature_path.v1 YAML export")
    parser.add_argument("--config", type=Path, default=None, help="signature_vectorizer.v1 YAML config")
    parser.add_argument(
        "--save-cleaned",
        type=Path,
        default=None,
        help="Write the thinned skeleton as a grayscale preview image",
    )

    # Thresholding
    parser.add_argument("--threshold", type=int, default=None, help="Force a gray threshold (0-255)")
    parser.add_argument("--invert", action="store_true", default=None, help="Treat light pixels as ink")
    parser.add_argument(
        "--no-auto-polarity",
        dest="auto_polarity",
        action="store_false",
        default=None,
        help="Disable automatic ink polarity detection",
    )

    # Geometry
    parser.add_argument("--rotate", type=float, default=None, help="Rotation in degrees: 0, 90, -90 or 180")
    parser.add_argument("--max-size", type=int, default=None, help="Downscale longer side to this (0 = off)")

    # Cleanup
    parser.add_argument(
        "--no-despeckle",
        dest="despeckle",
        action="store_false",
        default=None,
        help="Keep isolated pixels and pinholes",
    )
    parser.add_argument("--min-component", type=int, default=None, help="Minimum component size in pixels")
    parser.add_argument("--close-radius", type=int, default=None, help="Morphological closing radius (px)")
    parser.add_argument("--thin-iterations", type=int, default=None, help="Cap on thinning iterations")

    # Refinement
    parser.add_argument("--simplify", type=float, default=None, help="RDP tolerance (px)")
    parser.add_argument("--resample", type=float, default=None, help="Resample spacing (px)")
    parser.add_argument("--smooth-iterations", type=int, default=None, help="Chaikin smoothing iterations")

    # Logging
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-file", default=None, help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def config_from_args(args: argparse.Namespace) -> validators.VectorizeV1:
    """YAML config (if any) overridden by explicitly given flags."""
    base = validators.load_vectorize_config(args.config) if args.config else None
    return validators.build_vectorize_config(
        base,
        threshold=args.threshold,
        invert=args.invert,
        auto_polarity=args.auto_polarity,
        rotation_deg=args.rotate,
        max_size=args.max_size,
        despeckle=args.despeckle,
        min_component_size=args.min_component,
        close_radius=args.close_radius,
        thin_iterations=args.thin_iterations,
        simplify_epsilon=args.simplify,
        resample_spacing=args.resample,
        smooth_iterations=args.smooth_iterations,
    )


def run(args: argparse.Namespace) -> int:
    cfg = config_from_args(args)
    output = args.output or args.input.with_suffix(".svg")
    push_context(image=args.input.name)

    pixels = load_pixel_buffer(args.input)
    signature = vectorize(pixels, cfg, debug_preview_path=args.save_cleaned)

    if not signature.strokes:
        logger.warning(f"No strokes found in {args.input}; writing an empty path")

    signature.save_svg(output)
    if args.yaml is not None:
        signature.save_yaml(args.yaml)
        logger.info(f"Saved YAML export to {args.yaml}")

    logger.info(
        f"Done: {len(signature.strokes)} stroke(s), {signature.point_count} points, "
        f"canvas {signature.width}x{signature.height} at ({signature.offset_x}, {signature.offset_y})"
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        json=args.json_logs,
        quiet_libs=["PIL"],
        context={"app": "analyze"},
    )
    install_excepthook()

    try:
        return run(args)
    except (ConfigurationError, InputError, OSError, RuntimeError, yaml.YAMLError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
