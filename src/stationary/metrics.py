"""
Module for collecting and logging metrics about a stationary analysis run.
"""

import logging
from typing import List, NamedTuple

from .config import StationaryConfig
from .track import Track, TrackPoint

logger = logging.getLogger(__name__)


class StationaryMetrics(NamedTuple):
    """Container for stationary analysis metrics."""

    points: int
    rejected_points: int
    duration: float
    path_length: float
    stationary_points: int
    time_bound: float
    dist_bound: float


def collect_metrics(
    track: Track, stationary_points: List[TrackPoint], config: StationaryConfig
) -> StationaryMetrics:
    """
    Collect metrics from a track and its near-stationary points.

    Args:
        track: Track that was analyzed
        stationary_points: Result of the stationary scan
        config: Configuration the scan ran with

    Returns:
        StationaryMetrics describing the run
    """
    return StationaryMetrics(
        points=len(track),
        rejected_points=track.rejected_count,
        duration=track.length(),
        path_length=track.path_length(),
        stationary_points=len(stationary_points),
        time_bound=config.time_bound,
        dist_bound=config.dist_bound,
    )


def log_metrics(metrics: StationaryMetrics, config: StationaryConfig) -> None:
    """
    Log detailed metrics after the analysis.

    Args:
        metrics: StationaryMetrics containing collected metrics
        config: Configuration containing the metrics flag
    """
    if not config.metrics:
        return

    logger.debug("=== STATIONARY_METRICS ===")
    logger.debug(f"track_points={metrics.points}")
    logger.debug(f"rejected_points={metrics.rejected_points}")
    logger.debug(f"track_duration={metrics.duration:.3f}")
    logger.debug(f"track_path_length={metrics.path_length:.3f}")
    logger.debug(f"time_bound={metrics.time_bound}")
    logger.debug(f"dist_bound={metrics.dist_bound}")
    logger.debug(f"stationary_points={metrics.stationary_points}")
    logger.debug("=== END_STATIONARY_METRICS ===")
