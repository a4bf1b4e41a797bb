#!/usr/bin/env python3
"""
Detection of near-stationary points along a track.

A near-stationary point P is a trackpoint that

1. is at least ``time_bound`` away from the end of the track,
2. starts a part of the track in which every point strictly less than
   ``time_bound`` after P is no further than ``dist_bound`` from P, and
3. is separated from the previous near-stationary point Q by at least one
   point further than ``dist_bound`` from Q (the point may be P itself).
"""

from typing import List, TYPE_CHECKING
import logging

from .geometry import DistanceFunction, haversine_distance

if TYPE_CHECKING:
    from .track import Track, TrackPoint

logger = logging.getLogger(__name__)


def _is_stable(
    track: "Track",
    start: int,
    time_bound: float,
    dist_bound: float,
    distance: DistanceFunction,
) -> bool:
    """Check that every point within time_bound of track[start] stays within dist_bound."""
    anchor = track[start]
    idx = start
    # Callers guarantee track[-1] is at least time_bound after the anchor,
    # so the window always ends before the end of the track
    while track[idx].time - anchor.time < time_bound:
        if not distance(track[idx].position, anchor.position) <= dist_bound:
            return False
        idx += 1
    return True


def _cluster_length(
    track: "Track", start: int, dist_bound: float, distance: DistanceFunction
) -> int:
    """Length of the contiguous run of points within dist_bound of track[start]."""
    anchor = track[start].position
    end = start
    while end < len(track) and distance(track[end].position, anchor) <= dist_bound:
        end += 1
    return end - start


def find_stationary(
    track: "Track",
    time_bound: float,
    dist_bound: float,
    distance: DistanceFunction = haversine_distance,
) -> List["TrackPoint"]:
    """
    Find the near-stationary points on a track.

    Args:
        track: Track to scan; it is not modified
        time_bound: Minimum dwell time, positive
        dist_bound: Maximum dwell radius in the units of ``distance``, non-negative
        distance: Distance function between two positions (default: Haversine meters)

    Returns:
        Near-stationary trackpoints in ascending order by time. An empty list
        means none were found.

    Raises:
        ValueError: If time_bound is not positive or dist_bound is negative
    """
    if time_bound <= 0:
        raise ValueError(f"time_bound must be positive, got {time_bound}")
    if dist_bound < 0:
        raise ValueError(f"dist_bound must be non-negative, got {dist_bound}")

    stationary: List["TrackPoint"] = []
    if len(track) == 0:
        return stationary

    end_time = track[-1].time
    i = 0
    while i < len(track):
        candidate = track[i]

        # Remaining duration only shrinks from here on
        if not end_time - candidate.time >= time_bound:
            break

        if not _is_stable(track, i, time_bound, dist_bound, distance):
            i += 1
            continue

        stationary.append(candidate)
        run = _cluster_length(track, i, dist_bound, distance)
        logger.debug(
            f"Near-stationary point at t={candidate.time} "
            f"({candidate.latitude:.6f}, {candidate.longitude:.6f}); "
            f"skipping {run} clustered points"
        )
        i += run

    logger.debug(
        f"Found {len(stationary)} near-stationary points "
        f"(time_bound={time_bound}, dist_bound={dist_bound})"
    )
    return stationary
