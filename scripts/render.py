#!/usr/bin/env python3
"""Script entry point for a one-off render.

Usage:
    uv run python scripts/render.py --scale 10
    uv run python scripts/render.py --regions 256 --workers 8 --iterations 500
"""

import sys

# Force unbuffered output for real-time logging
sys.stdout.reconfigure(line_buffering=True)
sys.stderr.reconfigure(line_buffering=True)

import argparse
import logging

from parallelbrot.core.config import load_config
from parallelbrot.pipeline import Pipeline


def main():
    parser = argparse.ArgumentParser(
        description="Parallel Mandelbrot Renderer (unset options come from PARALLELBROT_* / .env)",
    )
    parser.add_argument("--width", type=int, default=None, help="Base image width")
    parser.add_argument("--height", type=int, default=None, help="Base image height")
    parser.add_argument("--scale", type=int, default=1, help="Image scale factor")
    parser.add_argument("--iterations", type=int, default=None, help="Iteration bound")
    parser.add_argument("--regions", type=int, default=None, help="Number of work regions")
    parser.add_argument("--workers", type=int, default=None, help="Maximum concurrent workers")
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Real-part escape test in single precision (matches old images)",
    )
    parser.add_argument("--show-regions", action="store_true", default=None, help="Log every work region")
    parser.add_argument("--output", type=str, default=None, help="Output image path")

    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    options = dict(
        width=args.width,
        height=args.height,
        iteration_bound=args.iterations,
        region_count=args.regions,
        worker_count=args.workers,
        show_regions=args.show_regions,
    )
    overrides = {key: value for key, value in options.items() if value is not None}
    if args.legacy:
        overrides.update(escape_criterion="real_part", precision="single")

    config = load_config(scale=args.scale, **overrides)

    pipeline = Pipeline(config=config, output_path=args.output)
    try:
        result = pipeline.run()
    except KeyboardInterrupt:
        print("\nInterrupted - stopping pipeline...")
        pipeline.stop()
        sys.exit(1)

    if result.output_path is None:
        print(f"err: {result.encode_error}")


if __name__ == "__main__":
    main()
