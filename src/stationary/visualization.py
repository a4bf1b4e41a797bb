#!/usr/bin/env python3
"""
Track visualization using folium maps.
"""

from typing import List
import datetime
import logging
import folium
from folium.template import Template

from .config import StationaryConfig
from .track import Track, TrackPoint

logger = logging.getLogger(__name__)

TRACK_COLOR = "#2E86AB"
STATIONARY_COLOR = "#D23C4C"


class StationaryLegend(folium.MacroElement):
    """Legend showing the stationary point count and the bounds used."""

    def __init__(self, stationary_count: int, config: StationaryConfig):
        super().__init__()
        self.stationary_count = stationary_count
        self.time_bound = config.time_bound
        self.dist_bound = config.dist_bound

        self._template = Template(
            """
        {% macro html(this, kwargs) %}
        <div id="stationary-legend" style="
            position: fixed;
            bottom: 50px;
            left: 50px;
            width: 230px;
            background-color: white;
            border: 2px solid grey;
            z-index: 9999;
            font-size: 13px;
            padding: 12px;
            font-family: Arial, sans-serif;
            border-radius: 5px;
            box-shadow: 0 2px 5px rgba(0,0,0,0.2);
            box-sizing: border-box;
        ">
            <b>Legend</b><br>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #2E86AB; font-size: 18px;">&#8212;</span>
                Track
            </div>
            <div style="margin: 4px 0; line-height: 1.3;">
                <span style="color: #D23C4C; font-size: 18px;">&#9679;</span>
                Stationary points ({{ this.stationary_count }})
            </div>
            <div style="margin: 4px 0; line-height: 1.3; color: #555;">
                time &ge; {{ this.time_bound }}, radius &le; {{ this.dist_bound }} m
            </div>
        </div>
        {% endmacro %}
        """
        )


def format_time(time: float) -> str:
    """
    Format a track time for popups.

    Times that look like POSIX timestamps are shown as UTC dates, anything
    else as plain seconds.
    """
    if time >= 1e8:
        try:
            moment = datetime.datetime.fromtimestamp(time, tz=datetime.timezone.utc)
            return moment.strftime("%Y-%m-%d %H:%M:%S UTC")
        except (OverflowError, OSError, ValueError):
            pass
    return f"t={time:g}"


def stationary_point_to_html(point: TrackPoint, index: int, total: int) -> str:
    """
    Format a near-stationary point into HTML for popup display.

    Args:
        point: The near-stationary trackpoint
        index: Zero-based position in the result
        total: Number of near-stationary points

    Returns:
        HTML-formatted string
    """
    return (
        f"<b>Stationary point {index + 1} of {total}</b>"
        f"<br><b>Time:</b> {format_time(point.time)}"
        f"<br><b>Latitude:</b> {point.latitude:.6f}"
        f"<br><b>Longitude:</b> {point.longitude:.6f}"
    )


def create_track_map(
    track: Track,
    stationary_points: List[TrackPoint],
    output_filename: str,
    config: StationaryConfig,
) -> None:
    """
    Create an interactive map showing the track and its near-stationary points, save as HTML.

    Args:
        track: Track that was analyzed
        stationary_points: Near-stationary points to mark
        output_filename: Path where HTML map file should be saved
        config: StationaryConfig with the bounds and map buffer

    Raises:
        ValueError: If track is empty
    """
    if not track:
        raise ValueError("Cannot create map for empty track")

    south, west, north, east = track.get_bbox(config.map_buffer)

    center_lat = (south + north) / 2
    center_lon = (west + east) / 2

    logger.debug(f"Creating map centered at ({center_lat:.4f}, {center_lon:.4f})")

    track_map = folium.Map(
        location=[center_lat, center_lon],
        tiles=None,
    )

    folium.TileLayer(
        tiles="CartoDB positron",
        attr=(
            "&copy; <a href='https://www.openstreetmap.org/copyright'>OpenStreetMap</a> "
            "contributors &copy; <a href='https://carto.com/attributions'>CARTO</a>"
        ),
        name="Standard",
        control=True,
        show=True,
    ).add_to(track_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        attr=(
            "Tiles &copy; Esri &mdash; Source: Esri, i-cubed, USDA, USGS, AEX, GeoEye, "
            "Getmapping, Aerogrid, IGN, IGP, UPR-EGP, and the GIS User Community"
        ),
        name="Satellite",
        control=True,
        show=False,
    ).add_to(track_map)

    folium.LayerControl().add_to(track_map)

    coordinates = [[point.latitude, point.longitude] for point in track]
    if len(coordinates) > 1:
        folium.PolyLine(
            coordinates,
            color=TRACK_COLOR,
            weight=2,
            opacity=0.6,
            popup="Track",
            z_index=1,
        ).add_to(track_map)

    folium.Marker(
        [track[0].latitude, track[0].longitude],
        popup=f"Start ({format_time(track[0].time)})",
        icon=folium.Icon(color="green", icon="play"),
    ).add_to(track_map)

    folium.Marker(
        [track[-1].latitude, track[-1].longitude],
        popup=f"End ({format_time(track[-1].time)})",
        icon=folium.Icon(color="red", icon="stop"),
    ).add_to(track_map)

    total = len(stationary_points)
    for index, point in enumerate(stationary_points):
        location = [point.latitude, point.longitude]
        # Dwell radius, only meaningful for meter-based distance functions
        folium.Circle(
            location,
            radius=config.dist_bound,
            color=STATIONARY_COLOR,
            weight=1,
            fill=True,
            fill_opacity=0.15,
        ).add_to(track_map)
        folium.CircleMarker(
            location,
            radius=6,
            color=STATIONARY_COLOR,
            fill=True,
            fill_opacity=0.9,
            popup=folium.Popup(
                stationary_point_to_html(point, index, total), max_width=300
            ),
            z_index=2,
        ).add_to(track_map)

    track_map.add_child(StationaryLegend(total, config))

    track_map.fit_bounds([[south, west], [north, east]])

    track_map.save(output_filename)

    logger.debug(
        f"Map saved to {output_filename} with {total} stationary points on {len(track)} trackpoints"
    )
