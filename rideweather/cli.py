"""
Command-line entry point.

    rideweather analyze payload.json [--output analysis.json] [--log-file run.log]
    rideweather rulebook
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rideweather import rulebook
from rideweather.config.loader import AnalysisConfigError, load_ride_request
from rideweather.pipeline import analyze_ride
from rideweather.utils.error_handling import RulebookError
from rideweather.utils.run_logging import AnalysisLogHandler, configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_INSUFFICIENT = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rideweather",
        description="Analyze ride conditions: hazards, climbs, daylight, safety and pacing insights",
    )
    parser.add_argument('--log-level', default=None, help='Logging level (default: RIDEWEATHER_LOG_LEVEL or INFO)')
    sub = parser.add_subparsers(dest='command', required=True)

    analyze = sub.add_parser('analyze', help='Analyze a JSON ride payload')
    analyze.add_argument('payload', type=Path, help='Path to the analysis payload JSON')
    analyze.add_argument('--output', type=Path, default=None, help='Write the analysis JSON here instead of stdout')
    analyze.add_argument('--rulebook', default=None, help='Alternative hazard rulebook YAML')
    analyze.add_argument('--log-file', type=Path, default=None, help='Mirror log output for this run to a file')

    rb = sub.add_parser('rulebook', help='Print the active hazard rulebook version')
    rb.add_argument('--rulebook', default=None, help='Alternative hazard rulebook YAML')
    return parser


def _analyze(args: argparse.Namespace) -> int:
    try:
        request = load_ride_request(args.payload)
        analysis = analyze_ride(request, rulebook_path=args.rulebook)
    except (AnalysisConfigError, RulebookError, FileNotFoundError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_INVALID

    if analysis is None:
        logger.error("Insufficient data: the payload contains no weather samples")
        return EXIT_INSUFFICIENT

    text = json.dumps(analysis.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        logger.info(f"Analysis written to {args.output}")
    else:
        print(text)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.command == 'rulebook':
        try:
            print(rulebook.version(args.rulebook))
        except (RulebookError, FileNotFoundError) as e:
            logger.error(f"{type(e).__name__}: {e}")
            return EXIT_INVALID
        return EXIT_OK

    if args.log_file:
        with AnalysisLogHandler(args.log_file, label=str(args.payload)):
            return _analyze(args)
    return _analyze(args)


if __name__ == '__main__':
    sys.exit(main())
