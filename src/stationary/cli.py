#!/usr/bin/env python3
"""
Stationary - find where a GPS track stays put.

Reads a track of "lat lon time" records (or a GPX file), prints the
near-stationary points one "lat lon" pair per line, and optionally
writes an interactive map of the result.
"""

from typing import List, Optional
import webbrowser
import argparse
import logging
import sys
import os
from gpxpy import gpx

from . import __version__
from . import visualization
from .config import StationaryConfig
from .file_utils import generate_output_filename
from .geometry import DISTANCE_FUNCTIONS
from .metrics import collect_metrics, log_metrics
from .track import MonotonicityError, Track, TrackFormatError

logger = logging.getLogger("stationary")

_console_handler: Optional[logging.Handler] = None


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="stationary",
        description="Find near-stationary points on a GPS track",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "time_bound",
        type=float,
        help="Minimum time to stay near a point (same units as the track times, > 0)",
    )
    parser.add_argument(
        "dist_bound",
        type=float,
        help="Maximum distance from the point in meters (>= 0)",
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        help="Track file to process (default: read standard input)",
    )
    parser.add_argument(
        "--format",
        dest="file_format",
        choices=["auto", "text", "gpx"],
        default="auto",
        help="Input format; auto picks gpx for .gpx files and text otherwise (default: auto)",
    )
    parser.add_argument(
        "--distance",
        choices=sorted(DISTANCE_FUNCTIONS),
        default="haversine",
        help="Distance calculation between points (default: haversine)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on records that do not advance in time instead of skipping them",
    )
    parser.add_argument(
        "--at",
        type=float,
        action="append",
        default=[],
        metavar="TIME",
        help="Also print 'time lat lon' for the location at TIME (may be repeated)",
    )
    parser.add_argument(
        "--map",
        nargs="?",
        const="",
        default=None,
        metavar="FILE",
        help="Write an HTML map of the result (default name: based on input filename)",
    )
    parser.add_argument(
        "--map-buffer",
        type=float,
        default=10.0,
        help="Map bounds buffer around the track in meters (default: 10)",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Don't automatically open the HTML map in browser",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics (at DEBUG level) after processing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"stationary {__version__}",
    )
    return parser


def setup_logging(level_name: str) -> None:
    """Setup logging configuration."""
    global _console_handler

    level = getattr(logging, level_name)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)
    _console_handler = console_handler


def determine_output_filename(
    input_filename: Optional[str], map_arg: str
) -> str:
    """
    Determine the map filename to use.

    Args:
        input_filename: Path to the input track file, None for standard input
        map_arg: Value from --map ("" if given without a filename)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If no filename can be derived or created
    """
    if map_arg:
        return map_arg

    if input_filename is None:
        raise ValueError("--map needs a filename when reading standard input")

    return generate_output_filename(input_filename)


def open_file_in_browser(filename: str) -> None:
    """
    Open the specified file in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except webbrowser.Error as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def load_track(args: argparse.Namespace) -> Track:
    """
    Read the input track from the named file or standard input.

    Raises:
        OSError: If the file cannot be opened
        TrackFormatError: If a text track is malformed
        MonotonicityError: If --strict and a record goes back in time
        gpx.GPXException: If a GPX track is malformed
    """
    if args.filename is not None:
        return Track.from_file(args.filename, args.file_format, strict=args.strict)

    logger.debug("Reading track from standard input")
    if args.file_format == "gpx":
        return Track.from_gpx(sys.stdin, strict=args.strict)
    return Track.from_text(sys.stdin, strict=args.strict)


def print_point_queries(track: Track, times: List[float]) -> bool:
    """
    Print "time lat lon" for each requested time.

    Returns:
        True if every time could be resolved
    """
    all_found = True
    for time in times:
        point = track.get_point(time) if len(track) > 0 else None
        if point is None:
            logger.warning(f"No location at time {time}: outside the track")
            all_found = False
            continue
        print(f"{point.time:f} {point.latitude:f} {point.longitude:f}")
    return all_found


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments, reads the track, prints the
    near-stationary points, and optionally writes a map.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    config = StationaryConfig.from_args(args)
    try:
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        track = load_track(args)
    except FileNotFoundError:
        logger.error(f"Track file not found: {args.filename}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read track file (permission denied): {args.filename}")
        sys.exit(1)
    except (TrackFormatError, MonotonicityError) as e:
        logger.error(f"Invalid track: {e}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Cannot read track: {e}")
        sys.exit(1)

    logger.info(f"Loaded track with {len(track)} points spanning {track.length():g}")
    if track.rejected_count:
        logger.info(f"Rejected {track.rejected_count} out-of-order records")

    all_found = print_point_queries(track, args.at)

    stationary_points = track.find_stationary(
        config.time_bound, config.dist_bound, config.distance
    )
    logger.info(f"Found {len(stationary_points)} near-stationary points")

    for point in stationary_points:
        print(f"{point.latitude:f} {point.longitude:f}")

    if args.map is not None:
        if not track:
            logger.error("Cannot create map for empty track")
            sys.exit(1)
        try:
            output_filename = determine_output_filename(args.filename, args.map)
            logger.debug(f"Output filename: {output_filename}")
            visualization.create_track_map(
                track, stationary_points, output_filename, config
            )
        except (RuntimeError, ValueError, OSError) as e:
            logger.error(f"Failed to create map: {e}")
            sys.exit(1)

        if not args.no_open:
            open_file_in_browser(output_filename)

    if config.metrics:
        log_metrics(collect_metrics(track, stationary_points, config), config)

    if not all_found:
        sys.exit(1)


if __name__ == "__main__":
    main()
