#!/usr/bin/env python3
import argparse
import json
import logging
import sys

from ..core import HISTOGRAM_MODES, calculate_histogram, focus_peaking
from ..errors import AnalysisError


def run_analysis(kind, path, threshold=128, mode="rgb", request_id=None):
    """Runs one analysis and returns its result as a plain dict."""
    if kind == "peaking":
        result = focus_peaking(path, threshold, request_id)
    elif kind == "histogram":
        result = calculate_histogram(path, mode, request_id)
    else:
        raise ValueError(f"Unknown analysis: {kind}")
    return result.to_dict()


def build_parser():
    parser = argparse.ArgumentParser(
        description="Compute focus-peaking edges or a histogram for an image"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--indent", type=int, default=None, help="Indent the JSON output"
    )
    sub = parser.add_subparsers(dest="kind", required=True)

    peaking = sub.add_parser("peaking", help="Trace focus-peaking edges")
    peaking.add_argument("path", help="Image file")
    peaking.add_argument(
        "--threshold", type=int, default=128, help="Edge threshold (0-255)"
    )
    peaking.add_argument("--request-id", default=None, help="Correlation id")

    histogram = sub.add_parser("histogram", help="Compute a 256-bin histogram")
    histogram.add_argument("path", help="Image file")
    histogram.add_argument("--mode", choices=HISTOGRAM_MODES, default="rgb")
    histogram.add_argument("--request-id", default=None, help="Correlation id")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    try:
        data = run_analysis(
            args.kind,
            args.path,
            threshold=getattr(args, "threshold", 128),
            mode=getattr(args, "mode", "rgb"),
            request_id=args.request_id,
        )
    except (AnalysisError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(data, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
