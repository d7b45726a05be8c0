"""Command-line image comparison.

Decodes two images, compares them, optionally writes a diff PNG, and maps the
outcome to the process exit status.

CLI:
    pixelmatch expected.png actual.png
    pixelmatch expected.png actual.png diff.png --threshold 0.05
    pixelmatch a.png b.png diff.png --config configs/pixelmatch.v1.yaml --diff-mask

Output (stdout):
    matched in 12.345 ms
    different pixels: 143
    error: 0.23%

Exit codes:
    0: No differing pixels
    2: Usage error (argparse)
    65: Input error (size mismatch, missing or unreadable image, invalid
        option or config file, diff image not writable)
    66: Images differ
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

import yaml

from pixelmatch.core.buffer import DimensionMismatchError
from pixelmatch.core.match import compare_files
from pixelmatch.utils import validators
from pixelmatch.utils.logging_config import pop_context, push_context, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INPUT_ERROR = 65
EXIT_DIFFERENT = 66

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _rgb(value: str) -> tuple:
    """Parse "R,G,B" into an int triple."""
    parts = value.split(",")
    if len(parts) != 3:
        raise argparse.ArgumentTypeError(f"expected R,G,B, got '{value}'")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected integer channels, got '{value}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelmatch",
        description="Compare two images pixel by pixel and report differing pixels",
    )
    parser.add_argument("expected", help="Path to expected image")
    parser.add_argument("actual", help="Path to actual image")
    parser.add_argument("diff", nargs="?", default=None, help="Optional path for the diff PNG")
    parser.add_argument(
        "-t", "--threshold",
        type=float,
        default=None,
        help="Matching threshold in [0, 1]; smaller is more sensitive (default 0.1)",
    )
    parser.add_argument(
        "-i", "--include-aa",
        action="store_true",
        default=None,
        help="Count anti-aliased pixels as differences",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        help="Opacity of the original image in the diff output (default 0.1)",
    )
    parser.add_argument("--aa-color", type=_rgb, default=None, metavar="R,G,B",
                        help="Color of anti-aliased pixels (default 255,255,0)")
    parser.add_argument("--diff-color", type=_rgb, default=None, metavar="R,G,B",
                        help="Color of differing pixels (default 255,0,0)")
    parser.add_argument("--diff-color-alt", type=_rgb, default=None, metavar="R,G,B",
                        help="Color of pixels that got darker (default: same as --diff-color)")
    parser.add_argument(
        "--diff-mask",
        action="store_true",
        default=None,
        help="Draw the diff over a transparent background",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML options file (pixelmatch.v1); flags override its values",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Threads classifying row bands (default 1); same result, no speedup on CPython",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="WARNING",
        choices=LOG_LEVELS,
        help="Logging level (default WARNING)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    parser.add_argument("--log-json", action="store_true", help="Log as JSON lines")
    return parser


def _load_options(args: argparse.Namespace) -> validators.Options:
    overrides = dict(
        threshold=args.threshold,
        include_aa=args.include_aa,
        alpha=args.alpha,
        aa_color=args.aa_color,
        diff_color=args.diff_color,
        diff_mask=args.diff_mask,
    )
    # explicit alt color only; None means "keep config/default"
    if args.diff_color_alt is not None:
        overrides['diff_color_alt'] = args.diff_color_alt

    if args.config:
        return validators.load_options(args.config, **overrides)
    return validators.build_options(**overrides)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the exit code."""
    args = build_parser().parse_args(argv)

    setup_logging(
        args.log_level,
        args.log_file,
        json=args.log_json,
        quiet_libs=["PIL"],
        context={"app": "pixelmatch"},
    )
    push_context(expected=args.expected, actual=args.actual)

    try:
        options = _load_options(args)
        start = time.perf_counter()
        result = compare_files(args.expected, args.actual, args.diff, options, workers=args.workers)
        elapsed_ms = (time.perf_counter() - start) * 1000.0
    except DimensionMismatchError as e:
        logger.error(f"Image dimensions do not match: {e}")
        print(f"Image dimensions do not match: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    except (OSError, yaml.YAMLError, validators.InvalidOptionError, RuntimeError) as e:
        # OSError covers missing, unreadable and undecodable images;
        # RuntimeError is a failed atomic write of the diff image
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    finally:
        pop_context(keys=["expected", "actual"])

    print(f"matched in {elapsed_ms:.3f} ms")
    print(f"different pixels: {result.differing_pixels}")
    print(f"error: {round(result.error_percent, 2)}%")
    logger.info(
        f"Compared {args.expected} vs {args.actual}: {result.differing_pixels} different, "
        f"{result.anti_aliased_pixels} anti-aliased"
    )

    return EXIT_DIFFERENT if result.differing_pixels > 0 else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
