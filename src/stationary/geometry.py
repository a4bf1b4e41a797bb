"""
Geographic primitives for track analysis.

This module provides the position type shared by the rest of the package,
the point-to-point distance functions used by stationary detection, and
helpers for projecting a track onto a local Transverse Mercator plane so
Shapely can measure it in metres.
"""

from typing import Callable, Dict, List, Optional, NamedTuple, Tuple
import math
from shapely.geometry import LineString
import pyproj

# Mean Earth radius in meters
EARTH_RADIUS = 6371000.0

_WGS84_GEOD = pyproj.Geod(ellps="WGS84")


class Position(NamedTuple):
    """Represents a geographic position with latitude and longitude."""

    latitude: float
    longitude: float


DistanceFunction = Callable[[Position, Position], float]


def haversine_distance(pos1: Position, pos2: Position) -> float:
    """
    Calculate Haversine distance between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Great circle distance in meters
    """
    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, a)

    return 2 * EARTH_RADIUS * math.asin(math.sqrt(a))


def geodesic_distance(pos1: Position, pos2: Position) -> float:
    """
    Calculate the WGS84 ellipsoidal distance between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Geodesic distance in meters
    """
    if pos1 == pos2:
        return 0.0
    _, _, distance = _WGS84_GEOD.inv(
        pos1.longitude, pos1.latitude, pos2.longitude, pos2.latitude
    )
    return abs(distance)


DISTANCE_FUNCTIONS: Dict[str, DistanceFunction] = {
    "haversine": haversine_distance,
    "geodesic": geodesic_distance,
}


def create_transverse_mercator_projection(
    bbox: Tuple[float, float, float, float],
) -> pyproj.Proj:
    """
    Build a local transverse mercator projection in meters.

    The projection is centered on the middle of the bounding box so
    distortion stays small across a single track.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees

    Returns:
        pyproj.Proj mapping (lon, lat) degrees to (x, y) meters
    """
    south, west, north, east = bbox
    return pyproj.Proj(
        proj="tmerc",
        lat_0=(south + north) / 2.0,
        lon_0=(west + east) / 2.0,
        k=1,
        x_0=0,
        y_0=0,
        datum="WGS84",
        units="m",
    )


def coords_to_polyline(
    positions: List[Position], projection: Optional[pyproj.Proj] = None
) -> LineString:
    """
    Convert a list of positions to a Shapely LineString.

    Args:
        positions: List of Position objects
        projection: Optional pyproj.Proj object for coordinate transformation.
                   If None, uses lon/lat coordinates directly.

    Returns:
        LineString object in projected coordinates if projection is provided,
        otherwise in geographic (lon, lat) coordinates

    Raises:
        ValueError: If positions has less than 2 entries
    """
    if len(positions) < 2:
        raise ValueError("At least two positions are required to create a LineString.")

    lons = [pos.longitude for pos in positions]
    lats = [pos.latitude for pos in positions]

    if projection is not None:
        x_coords, y_coords = projection(lons, lats)
        return LineString(list(zip(x_coords, y_coords)))

    return LineString(list(zip(lons, lats)))
