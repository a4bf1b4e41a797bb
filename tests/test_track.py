#!/usr/bin/env python3
"""
Tests for the Track container and its readers.
"""

import io
import pytest
from stationary.geometry import Position
from stationary.track import (
    EmptyTrackError,
    MonotonicityError,
    Track,
    TrackFormatError,
    TrackPoint,
)


def make_point(lat: float, lon: float, time: float) -> TrackPoint:
    return TrackPoint(Position(lat, lon), time)


class TestTrackContainer:
    """Test insertion, ordering and basic properties."""

    def test_empty_track(self):
        track = Track()
        assert len(track) == 0
        assert track.length() == 0.0
        assert list(track) == []
        assert not track

    def test_add_points_in_order(self):
        track = Track()
        points = [make_point(1.0, 2.0, t) for t in (0.0, 1.5, 3.0, 10.0)]
        for point in points:
            assert track.add_point(point)

        assert len(track) == 4
        assert list(track) == points
        assert track[0] == points[0]
        assert track[-1] == points[-1]
        assert track.length() == 10.0
        assert track.start_time == 0.0
        assert track.end_time == 10.0

    def test_rejects_equal_time(self):
        track = Track()
        assert track.add_point(make_point(0.0, 0.0, 5.0))
        assert not track.add_point(make_point(1.0, 1.0, 5.0))
        assert len(track) == 1
        assert track[0] == make_point(0.0, 0.0, 5.0)

    def test_rejects_earlier_time(self):
        track = Track()
        assert track.add_point(make_point(0.0, 0.0, 5.0))
        assert track.add_point(make_point(0.0, 0.0, 6.0))
        assert not track.add_point(make_point(0.0, 0.0, 1.0))
        assert [p.time for p in track] == [5.0, 6.0]
        # Later points are still accepted after a rejection
        assert track.add_point(make_point(0.0, 0.0, 7.0))
        assert len(track) == 3

    def test_first_point_always_accepted(self):
        track = Track()
        assert track.add_point(make_point(0.0, 0.0, -100.0))
        assert track.length() == 0.0

    def test_constructor_counts_rejections(self):
        points = [make_point(0, 0, 1), make_point(0, 0, 3), make_point(0, 0, 2)]
        track = Track(points)
        assert len(track) == 2
        assert track.rejected_count == 1

    def test_many_points(self):
        track = Track()
        for i in range(1000):
            assert track.add_point(make_point(i * 0.001, 0.0, float(i)))
        assert len(track) == 1000
        assert [p.time for p in track] == [float(i) for i in range(1000)]

    def test_iteration_is_restartable(self):
        track = Track([make_point(0, 0, t) for t in range(5)])
        assert list(track.points()) == list(track.points())
        assert list(track) == list(track)

    def test_tracks_are_independent(self):
        first = Track()
        second = Track()
        for i in range(10):
            first.add_point(make_point(0, 0, i))
        second.add_point(make_point(1, 1, 0))
        second.add_point(make_point(1, 1, 1))
        assert len(first) == 10
        assert len(second) == 2

    def test_rejects_nan_time(self):
        track = Track()
        assert not track.add_point(make_point(0.0, 0.0, float("nan")))
        assert len(track) == 0
        assert track.add_point(make_point(0.0, 0.0, 0.0))
        assert not track.add_point(make_point(0.0, 0.0, float("nan")))
        # A rejected NaN must not open the door to earlier times
        assert not track.add_point(make_point(0.0, 0.0, -5.0))
        assert [p.time for p in track] == [0.0]

    def test_infinite_times_keep_ordering(self):
        track = Track()
        assert track.add_point(make_point(0.0, 0.0, float("-inf")))
        assert track.add_point(make_point(0.0, 0.0, 0.0))
        assert track.add_point(make_point(0.0, 0.0, float("inf")))
        assert not track.add_point(make_point(0.0, 0.0, float("inf")))
        assert not track.add_point(make_point(0.0, 0.0, 1.0))
        assert len(track) == 3

    def test_start_time_on_empty_track(self):
        with pytest.raises(EmptyTrackError):
            Track().start_time


class TestTrackGeometry:
    """Test bounding box and path length."""

    def test_bbox(self):
        track = Track(
            [make_point(10.0, 20.0, 0), make_point(11.0, 19.0, 1), make_point(10.5, 21.0, 2)]
        )
        assert track.get_bbox() == (10.0, 19.0, 11.0, 21.0)

    def test_bbox_with_buffer(self):
        track = Track([make_point(10.0, 20.0, 0), make_point(11.0, 21.0, 1)])
        south, west, north, east = track.get_bbox(1110.0)
        assert south == pytest.approx(9.99)
        assert north == pytest.approx(11.01)
        assert west < 20.0
        assert east > 21.0

    def test_bbox_empty_track(self):
        with pytest.raises(EmptyTrackError):
            Track().get_bbox()

    def test_path_length(self):
        # 0.01 degrees of latitude is about 1112 m
        track = Track(
            [make_point(47.0, -122.0, 0), make_point(47.01, -122.0, 60)]
        )
        assert track.path_length() == pytest.approx(1112.0, rel=0.01)

    def test_path_length_short_track(self):
        assert Track().path_length() == 0.0
        assert Track([make_point(1, 1, 0)]).path_length() == 0.0


class TestTextReader:
    """Test parsing of whitespace-separated lat lon time records."""

    def test_reads_records(self):
        track = Track.from_text(io.StringIO("1.0 2.0 0\n1.5 2.5 10\n"))
        assert list(track) == [make_point(1.0, 2.0, 0.0), make_point(1.5, 2.5, 10.0)]

    def test_records_may_span_lines(self):
        track = Track.from_text(io.StringIO("1.0 2.0\n0 1.5\n2.5 10"))
        assert len(track) == 2
        assert track[1] == make_point(1.5, 2.5, 10.0)

    def test_empty_input(self):
        track = Track.from_text(io.StringIO(""))
        assert len(track) == 0

    def test_skips_out_of_order_records(self, caplog):
        track = Track.from_text(io.StringIO("0 0 5\n0 0 4\n0 0 6\n"))
        assert [p.time for p in track] == [5.0, 6.0]
        assert track.rejected_count == 1
        assert "Skipping record 2" in caplog.text

    def test_strict_rejects_out_of_order_records(self):
        with pytest.raises(MonotonicityError, match="Record 2"):
            Track.from_text(io.StringIO("0 0 5\n0 0 5\n"), strict=True)

    def test_invalid_number(self):
        with pytest.raises(TrackFormatError, match="Line 2"):
            Track.from_text(io.StringIO("0 0 1\n0 north 2\n"))

    @pytest.mark.parametrize("token", ["nan", "NaN", "-nan"])
    def test_nan_value(self, token):
        with pytest.raises(TrackFormatError, match="Line 2"):
            Track.from_text(io.StringIO(f"0 0 0\n0 0 {token}\n0 0 -5\n"))

    def test_infinite_time_is_a_number(self):
        track = Track.from_text(io.StringIO("0 0 0\n0 0 inf\n0 0 -5\n"))
        assert [p.time for p in track] == [0.0, float("inf")]
        assert track.rejected_count == 1

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "binary.txt"
        path.write_bytes(b"0 0 0\n\xff\xfe 0 1\n")
        with pytest.raises(TrackFormatError, match="not valid UTF-8"):
            Track.from_file(str(path))

    def test_incomplete_record(self):
        with pytest.raises(TrackFormatError, match="expected 3 values"):
            Track.from_text(io.StringIO("0 0 1\n0 0\n"))


GPX_DATA = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <trkseg>
      <trkpt lat="47.0" lon="-122.0"><time>2024-05-01T12:00:00Z</time></trkpt>
      <trkpt lat="47.1" lon="-122.1"><time>2024-05-01T12:00:10Z</time></trkpt>
      <trkpt lat="47.2" lon="-122.2"></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="47.3" lon="-122.3"><time>2024-05-01T12:00:05Z</time></trkpt>
      <trkpt lat="47.4" lon="-122.4"><time>2024-05-01T12:00:20Z</time></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


class TestGpxReader:
    """Test parsing of GPX tracks."""

    def test_reads_timed_points(self, caplog):
        track = Track.from_gpx(io.StringIO(GPX_DATA))
        assert len(track) == 3
        assert track[0].position == Position(47.0, -122.0)
        assert track[0].time == 1714564800.0
        assert track.length() == 20.0
        assert track.rejected_count == 1
        assert "without a timestamp" in caplog.text

    def test_strict(self):
        with pytest.raises(MonotonicityError):
            Track.from_gpx(io.StringIO(GPX_DATA), strict=True)

    def test_from_file_detects_format(self, tmp_path):
        gpx_file = tmp_path / "walk.GPX"
        gpx_file.write_text(GPX_DATA, encoding="utf-8")
        text_file = tmp_path / "walk.txt"
        text_file.write_text("0 0 0\n0 0 1\n", encoding="utf-8")

        assert len(Track.from_file(str(gpx_file))) == 3
        assert len(Track.from_file(str(text_file))) == 2
        assert len(Track.from_file(str(text_file), file_format="text")) == 2

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "binary.gpx"
        path.write_bytes(GPX_DATA.encode("utf-8").replace(b"test", b"\xff\xfe"))
        with pytest.raises(TrackFormatError, match="not valid UTF-8"):
            Track.from_file(str(path))

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Track.from_file(str(tmp_path / "missing.txt"))
