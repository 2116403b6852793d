"""
GPX parsing for the Aid Station Planner.

Turns GPX content into the plain inputs of the track engine: ordered
(longitude, latitude, elevation) coordinates and named markers.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import gpxpy
import gpxpy.gpx

from .waypoint_matcher import Marker
from ..errors import InsufficientDataError, UnsupportedFileError
from ..config.logging_config import get_logger

logger = get_logger(__name__)

UNNAMED_WAYPOINT = "Unnamed Waypoint"

Coordinate = Tuple[float, float, Optional[float]]


@dataclass
class ParsedTrack:
    """Geometry and markers read from one GPX file."""
    coordinates: List[Coordinate]
    markers: List[Marker] = field(default_factory=list)
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'coordinates': [list(c) for c in self.coordinates],
            'markers': [
                {'name': m.name, 'lon': m.longitude, 'lat': m.latitude}
                for m in self.markers
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParsedTrack":
        return cls(
            coordinates=[tuple(c) for c in data['coordinates']],
            markers=[
                Marker(name=m['name'], longitude=m['lon'], latitude=m['lat'])
                for m in data.get('markers', [])
            ],
            name=data.get('name'),
        )


def _first_line(gpx: gpxpy.gpx.GPX) -> Tuple[Optional[str], list]:
    """Points of the first track (all segments), or of the first route."""
    for track in gpx.tracks:
        points = [p for segment in track.segments for p in segment.points]
        if points:
            return track.name, points
    for route in gpx.routes:
        if route.points:
            return route.name, route.points
    return None, []


def parse_gpx(gpx_content: str) -> ParsedTrack:
    """
    Parse GPX content into track coordinates and markers.

    Args:
        gpx_content: String content of the GPX file

    Returns:
        ParsedTrack with coordinates in (lon, lat, elevation) order

    Raises:
        UnsupportedFileError: If the content is not valid GPX
        InsufficientDataError: If the file holds no track points
    """
    try:
        gpx = gpxpy.parse(gpx_content)
    except gpxpy.gpx.GPXException as e:
        raise UnsupportedFileError(f"Error parsing GPX file: {e}") from e

    name, points = _first_line(gpx)
    if not points:
        raise InsufficientDataError("No track data found in GPX file")

    coordinates = [(p.longitude, p.latitude, p.elevation) for p in points]
    markers = [
        Marker(name=w.name or UNNAMED_WAYPOINT, longitude=w.longitude, latitude=w.latitude)
        for w in gpx.waypoints
    ]

    logger.info(f"Parsed GPX '{name or gpx.name or 'unnamed'}': {len(coordinates)} points, {len(markers)} markers")
    return ParsedTrack(coordinates=coordinates, markers=markers, name=name or gpx.name)
