#!/usr/bin/env python3
"""
Track data model for stationary analysis.
"""

from typing import Iterable, Iterator, List, NamedTuple, Optional, TextIO, Tuple
import bisect
import logging
import math
from math import cos, radians
import gpxpy
import gpxpy.gpx

from .geometry import (
    DistanceFunction,
    Position,
    coords_to_polyline,
    create_transverse_mercator_projection,
    haversine_distance,
)
from .stationary import find_stationary

logger = logging.getLogger(__name__)


class TrackError(Exception):
    """Base class for track errors."""


class EmptyTrackError(TrackError, ValueError):
    """Raised when an operation needs at least one trackpoint."""


class TrackFormatError(TrackError, ValueError):
    """Raised when track input cannot be parsed."""


class MonotonicityError(TrackError, ValueError):
    """Raised by strict readers when a record does not advance in time."""


class TrackPoint(NamedTuple):
    """A single timestamped location sample."""

    position: Position
    time: float

    @property
    def latitude(self) -> float:
        return self.position.latitude

    @property
    def longitude(self) -> float:
        return self.position.longitude


class Track:
    """An ordered sequence of trackpoints with strictly increasing times."""

    def __init__(self, points: Optional[Iterable[TrackPoint]] = None):
        """Initializes a Track object.

        Args:
            points: Optional trackpoints to add in order. Points that do not
                advance in time are rejected exactly as add_point rejects them.
        """
        self._points: List[TrackPoint] = []
        # Parallel index of times for bisection
        self._times: List[float] = []
        self.rejected_count = 0

        if points is not None:
            for point in points:
                if not self.add_point(point):
                    self.rejected_count += 1

    def __len__(self) -> int:
        """Return number of trackpoints in track."""
        return len(self._points)

    def __getitem__(self, index):
        """Allow indexing into trackpoints."""
        return self._points[index]

    def __iter__(self) -> Iterator[TrackPoint]:
        """Allow iteration over trackpoints."""
        return iter(self._points)

    def __repr__(self) -> str:
        return f"Track({len(self)} points, {self.length():.1f}s)"

    def points(self) -> Iterator[TrackPoint]:
        """Iterate over trackpoints in ascending time order."""
        return iter(self._points)

    def add_point(self, point: TrackPoint) -> bool:
        """
        Append a trackpoint if its time is strictly after the last trackpoint's.

        Args:
            point: Trackpoint to append

        Returns:
            True if the point was added, False if its time is NaN or would break
            time ordering (the track is left unchanged)
        """
        if math.isnan(point.time):
            logger.debug("Rejected point with NaN time")
            return False
        if self._times and not point.time > self._times[-1]:
            logger.debug(
                f"Rejected point at t={point.time} (last point at t={self._times[-1]})"
            )
            return False

        self._times.append(point.time)
        try:
            self._points.append(point)
        except MemoryError:
            self._times.pop()
            raise
        return True

    @property
    def start_time(self) -> float:
        if not self._points:
            raise EmptyTrackError("Track has no points")
        return self._times[0]

    @property
    def end_time(self) -> float:
        if not self._points:
            raise EmptyTrackError("Track has no points")
        return self._times[-1]

    def length(self) -> float:
        """
        Returns the time between the first and last trackpoints.

        Returns:
            Duration of the track, or 0.0 if the track is empty
        """
        if not self._times:
            return 0.0
        return self._times[-1] - self._times[0]

    def get_point(self, time: float) -> Optional[TrackPoint]:
        """
        Return the trackpoint at the given time.

        If no trackpoint has exactly that time, latitude and longitude are
        interpolated separately between the closest trackpoints before and
        after it.

        Args:
            time: Time to look up

        Returns:
            The stored trackpoint, an interpolated trackpoint carrying the
            requested time, or None if time is outside the track

        Raises:
            EmptyTrackError: If the track has no points
        """
        if not self._times:
            raise EmptyTrackError("Cannot look up a point on an empty track")

        if not self._times[0] <= time <= self._times[-1]:
            return None

        idx = bisect.bisect_left(self._times, time)
        if self._times[idx] == time:
            return self._points[idx]

        # times[idx - 1] < time < times[idx], and idx >= 1 after the range check
        before = self._points[idx - 1]
        after = self._points[idx]
        fraction = (time - before.time) / (after.time - before.time)

        latitude = before.latitude + fraction * (after.latitude - before.latitude)
        longitude = before.longitude + fraction * (after.longitude - before.longitude)

        return TrackPoint(Position(latitude, longitude), time)

    def find_stationary(
        self,
        time_bound: float,
        dist_bound: float,
        distance: DistanceFunction = haversine_distance,
    ) -> List[TrackPoint]:
        """Find near-stationary points; see stationary.find_stationary."""
        return find_stationary(self, time_bound, dist_bound, distance)

    def get_bbox(self, buffer: float = 0.0) -> Tuple[float, float, float, float]:
        """
        Get bounding box for this track, optionally with a buffer.

        Args:
            buffer: Buffer distance in meters (default: 0.0)

        Returns:
            Tuple of (south, west, north, east) in decimal degrees

        Raises:
            EmptyTrackError: If the track has no points
        """
        if not self._points:
            raise EmptyTrackError("Cannot compute bounding box of an empty track")

        latitudes = [point.latitude for point in self._points]
        longitudes = [point.longitude for point in self._points]
        min_lat, max_lat = min(latitudes), max(latitudes)
        min_lon, max_lon = min(longitudes), max(longitudes)

        if buffer == 0.0:
            return (min_lat, min_lon, max_lat, max_lon)

        # Convert buffer from m to approximate degrees
        # 1 degree latitude ≈ 111 km = 111000m
        avg_lat = (min_lat + max_lat) / 2
        lat_buffer = buffer / 111000.0
        lon_buffer = buffer / (111000.0 * max(abs(cos(radians(avg_lat))), 1e-6))

        return (
            max(-90.0, min_lat - lat_buffer),
            max(-180.0, min_lon - lon_buffer),
            min(90.0, max_lat + lat_buffer),
            min(180.0, max_lon + lon_buffer),
        )

    def path_length(self) -> float:
        """
        Distance travelled along the track in meters.

        The track is projected onto a transverse mercator plane centered on
        its bounding box and measured as a Shapely LineString.

        Returns:
            Path length in meters, 0.0 for tracks with fewer than two points
        """
        if len(self._points) < 2:
            return 0.0

        projection = create_transverse_mercator_projection(self.get_bbox())
        linestring = coords_to_polyline(
            [point.position for point in self._points], projection
        )
        return linestring.length

    @classmethod
    def from_text(cls, file_input: TextIO, strict: bool = False) -> "Track":
        """
        Parse whitespace-separated "lat lon time" records into a track.

        Records are read as a flat stream of numbers, so a record may span
        lines.

        Args:
            file_input: File-like object containing the records
            strict: If True, a record that does not advance in time is an error
                instead of being skipped

        Returns:
            Track containing every accepted record

        Raises:
            TrackFormatError: If a value is not a number, the input is not valid
                UTF-8 text, or the last record is incomplete
            MonotonicityError: If strict and a record does not advance in time
        """
        track = cls()
        values: List[float] = []
        record = 0
        line_number = 0
        lines = iter(file_input)

        while True:
            try:
                line = next(lines)
            except StopIteration:
                break
            except UnicodeDecodeError as e:
                raise TrackFormatError(
                    f"Input is not valid UTF-8 text ({e.reason})"
                ) from e
            line_number += 1

            for token in line.split():
                try:
                    value = float(token)
                except ValueError:
                    value = math.nan
                if math.isnan(value):
                    raise TrackFormatError(
                        f"Line {line_number}: invalid number {token!r}"
                    )
                values.append(value)

                if len(values) == 3:
                    record += 1
                    lat, lon, time = values
                    values = []
                    track._add_record(
                        TrackPoint(Position(lat, lon), time), record, strict
                    )

        if values:
            raise TrackFormatError(
                f"Record {record + 1}: expected 3 values (lat lon time), got {len(values)}"
            )

        logger.debug(
            f"Parsed {len(track)} trackpoints from {record} records "
            f"({track.rejected_count} rejected)"
        )
        return track

    @classmethod
    def from_gpx(cls, file_input: TextIO, strict: bool = False) -> "Track":
        """
        Parse GPX file and concatenate all tracks/segments into a single track.

        Args:
            file_input: File-like object containing GPX data
            strict: If True, a point that does not advance in time is an error
                instead of being skipped

        Returns:
            Track containing every accepted point; times are POSIX seconds

        Raises:
            gpxpy.gpx.GPXException: If GPX file is malformed.
            TrackFormatError: If the file is not valid UTF-8 text
            MonotonicityError: If strict and a point does not advance in time
        """
        try:
            gpx_data = gpxpy.parse(file_input)
        except UnicodeDecodeError as e:
            raise TrackFormatError(f"GPX file is not valid UTF-8 text ({e.reason})") from e

        track = cls()
        record = 0
        untimed = 0

        for gpx_track in gpx_data.tracks:
            for segment in gpx_track.segments:
                for point in segment.points:
                    record += 1
                    if point.time is None:
                        untimed += 1
                        continue
                    track._add_record(
                        TrackPoint(
                            Position(point.latitude, point.longitude),
                            point.time.timestamp(),
                        ),
                        record,
                        strict,
                    )

        if untimed:
            logger.warning(f"Skipped {untimed} GPX points without a timestamp")

        logger.debug(f"Parsed {len(track)} trackpoints from GPX file")
        return track

    @classmethod
    def from_file(
        cls, filename: str, file_format: str = "auto", strict: bool = False
    ) -> "Track":
        """
        Load a track from a text or GPX file.

        Args:
            filename: Path to the input file
            file_format: "text", "gpx", or "auto" (GPX if the name ends in .gpx)
            strict: Passed to the reader

        Returns:
            Track read from the file

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            TrackFormatError: If a text file is malformed or not valid UTF-8.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        if file_format == "auto":
            file_format = "gpx" if filename.lower().endswith(".gpx") else "text"

        logger.debug(f"Reading {file_format} track file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            if file_format == "gpx":
                return cls.from_gpx(f, strict=strict)
            return cls.from_text(f, strict=strict)

    def _add_record(self, point: TrackPoint, record: int, strict: bool) -> None:
        """Add a parsed record, applying the reader's rejection policy."""
        if self.add_point(point):
            return
        if self._times:
            reason = f"time {point.time} does not follow {self._times[-1]}"
        else:
            reason = f"time {point.time} is not a valid first time"
        if strict:
            raise MonotonicityError(f"Record {record}: {reason}")
        self.rejected_count += 1
        logger.warning(f"Skipping record {record}: {reason}")
