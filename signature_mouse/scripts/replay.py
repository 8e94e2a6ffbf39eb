"""Replay a vectorized signature with the system pointer.

Loads strokes from SVG or signature_path.v1 YAML and draws them with
mouse-down / move / mouse-up events.

Placement (pick one):
    - default: the first stroke starts at the pointer position captured after
      --delay seconds; --scale / --width / --height resize, --offset-x /
      --offset-y pin the origin to absolute screen coordinates
    - --rect LEFT,TOP,WIDTH,HEIGHT: fit and centre the signature inside a
      screen rectangle with --padding on each side (delay defaults to 0)

CLI:
    signature-replay --input sig.svg
    signature-replay -i sig.yaml --delay 3 --speed 1500 --width 400
    signature-replay -i sig.svg --rect 100,200,600,200 --padding 0.05
    signature-replay -i sig.svg --dry-run --log-level DEBUG

Move the pointer into a screen corner to abort (pyautogui fail-safe), or
press Ctrl+C; the button is released either way.

Exit codes:
    0 on success, 1 on configuration/input errors or cancellation.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from ..errors import ConfigurationError, InputError, ReplayCancelled
from ..utils import validators
from ..utils.logging_config import install_excepthook, setup_logging
from ..replay import DryRunBackend, ReplayEngine, ScreenRect, compute_placement, create_backend
from ..vector import load_signature

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signature-replay",
        description="Draw a vectorized signature with the mouse pointer",
    )
    parser.add_argument("--input", "-i", type=Path, required=True, help="Signature file (.svg or .yaml)")
    parser.add_argument("--config", type=Path, default=None, help="replay.v1 YAML config")

    # Timing
    parser.add_argument("--delay", type=float, default=None, help="Seconds to wait before drawing")
    parser.add_argument("--speed", type=float, default=None, help="Pointer speed (px/s)")
    parser.add_argument("--step", type=float, default=None, help="Interpolation step (px)")

    # Placement
    parser.add_argument("--scale", type=float, default=None, help="Uniform scale factor")
    parser.add_argument("--width", type=float, default=None, help="Fit the signature into this width (px)")
    parser.add_argument("--height", type=float, default=None, help="Fit the signature into this height (px)")
    parser.add_argument("--offset-x", type=float, default=None, help="Absolute screen x of the stroke origin")
    parser.add_argument("--offset-y", type=float, default=None, help="Absolute screen y of the stroke origin")
    parser.add_argument(
        "--rect",
        default=None,
        metavar="LEFT,TOP,WIDTH,HEIGHT",
        help="Fit and centre inside this screen rectangle",
    )
    parser.add_argument("--padding", type=float, default=None, help="Padding ratio inside --rect (0 to <0.45)")

    # Backend
    parser.add_argument("--backend", default=None, help="pyautogui or dry-run")
    parser.add_argument("--dry-run", action="store_true", help="Record events instead of moving the pointer")

    # Logging
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING, ERROR")
    parser.add_argument("--log-file", default=None, help="Also log to this file")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def options_from_args(args: argparse.Namespace) -> validators.ReplayV1:
    """YAML config (if any) overridden by explicitly given flags.

    Raises
    ------
    ConfigurationError
        If --rect is combined with scale, size or offset options
    """
    base = validators.load_replay_config(args.config) if args.config else None

    delay = args.delay
    if args.rect and delay is None and (base is None or "delay_s" not in base.model_fields_set):
        delay = 0.0

    opts = validators.build_replay_config(
        base,
        delay_s=delay,
        speed_px_s=args.speed,
        step_px=args.step,
        scale=args.scale,
        target_width=args.width,
        target_height=args.height,
        offset_x=args.offset_x,
        offset_y=args.offset_y,
        padding=args.padding,
        backend="dry-run" if args.dry_run else args.backend,
    )

    if args.rect:
        conflicting = [
            name for name, value in (
                ("scale", None if opts.scale == 1.0 else opts.scale),
                ("width", opts.target_width),
                ("height", opts.target_height),
                ("offset-x", opts.offset_x),
                ("offset-y", opts.offset_y),
            ) if value is not None
        ]
        if conflicting:
            raise ConfigurationError(
                f"--rect cannot be combined with: {', '.join(conflicting)}"
            )
    return opts


def run(args: argparse.Namespace) -> int:
    opts = options_from_args(args)
    signature = load_signature(args.input)
    if not signature.strokes:
        logger.warning(f"No strokes in {args.input}; nothing to replay")
        return 0

    placement = None
    if args.rect:
        rect = ScreenRect.parse(args.rect)
        placement = compute_placement(signature, rect, opts.padding)
        logger.info(f"Target rectangle {rect}: scale={placement.scale:.3f}")

    backend = create_backend(opts.backend)
    engine = ReplayEngine(backend, opts)
    try:
        stats = engine.replay(signature, placement)
    except KeyboardInterrupt:
        engine.cancel()
        logger.warning("Replay interrupted")
        return 1

    if isinstance(backend, DryRunBackend):
        logger.info(f"Dry run: {backend.summary()}")
    logger.info(f"Replayed {stats.strokes} stroke(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(
        log_level=args.log_level,
        log_file=args.log_file,
        json=args.json_logs,
        quiet_libs=["PIL"],
        context={"app": "replay"},
    )
    install_excepthook()

    try:
        return run(args)
    except ReplayCancelled as e:
        logger.warning(str(e))
        return 1
    except (ConfigurationError, InputError, OSError, RuntimeError, yaml.YAMLError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
