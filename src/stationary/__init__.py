#!/usr/bin/env python3
"""
Stationary - GPS track analysis for dwell detection.

This package provides an ordered track container with point-at-time
lookup and interpolation, and detection of the near-stationary points
where a track stays within a distance bound for a minimum time.
"""
import importlib.metadata

__version__ = importlib.metadata.version("stationary")

# Import main classes for public API
from .geometry import Position, haversine_distance, geodesic_distance
from .track import (
    EmptyTrackError,
    MonotonicityError,
    Track,
    TrackError,
    TrackFormatError,
    TrackPoint,
)
from .stationary import find_stationary

__all__ = [
    "EmptyTrackError",
    "MonotonicityError",
    "Position",
    "Track",
    "TrackError",
    "TrackFormatError",
    "TrackPoint",
    "find_stationary",
    "geodesic_distance",
    "haversine_distance",
]
