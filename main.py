"""
Aid Station Planner - Command line entry point

Processes a GPX file and prints elevation gain/loss between aid stations:
- Aid stations given with --station NAME=MILE (any order)
- Without --station, the GPX waypoints matched onto the track are used
- Optional smoothing between waypoints with --smooth
"""

import argparse
import json
import sys

from aidplanner.config.config import get_config
from aidplanner.config.logging_config import setup_logging
from aidplanner.errors import TrackProcessingError
from aidplanner.processing.segment_analyzer import Checkpoint, SegmentStats, segments_to_dataframe
from aidplanner.processing.track_processor import TrackProcessor
from aidplanner.utils.units import UnitConverter


def parse_station(value: str) -> Checkpoint:
    """Parse NAME=MILE into a checkpoint."""
    name, sep, mile = value.rpartition('=')
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=MILE, got '{value}'")
    try:
        return Checkpoint(name=name, mile=float(mile))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Mile marker must be a number, got '{mile}'")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Elevation gain/loss between aid stations on a GPX track")
    parser.add_argument("gpx_file", help="Path to the GPX file")
    parser.add_argument("--station", action="append", type=parse_station, dest="stations",
                        metavar="NAME=MILE", help="Aid station at a mile marker (repeatable)")
    parser.add_argument("--smooth", action="store_true", default=None,
                        help="Simplify the track between waypoints before analysis")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    return parser


def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    config = get_config()
    logger = setup_logging(
        log_level=config.app.log_level,
        log_to_file=config.app.log_to_file
    )
    logger.info("Aid Station Planner starting")

    processor = TrackProcessor(config=config)
    try:
        report = processor.process_file(args.gpx_file, args.stations, enable_smoothing=args.smooth)
    except (TrackProcessingError, OSError) as e:
        logger.error(f"Could not process {args.gpx_file}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report, indent=2))
        return 0

    print(f"Total distance: {UnitConverter.format_distance(report['total_distance'])}")
    if report['waypoints']:
        print("Waypoints: " + ", ".join(f"{w['name']} ({w['distance']:.1f})" for w in report['waypoints']))
    for station in report['aid_stations']:
        print(f"  {station['name']}: mile {station['mile']:.1f}, "
              f"elevation {UnitConverter.format_elevation(station['elevation'])}")

    segments = [SegmentStats.from_dict(s) for s in report['segments']]
    if segments:
        print(segments_to_dataframe(segments).to_string(index=False))
    else:
        print("No aid stations to report on.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
