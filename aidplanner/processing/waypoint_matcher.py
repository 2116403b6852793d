"""
Waypoint matching for the Aid Station Planner.

Named GPX markers are mapped onto the track by an exhaustive proximity scan.
A marker passed more than once on a loop course yields one matched waypoint
per distinct pass.
"""

from dataclasses import dataclass
from typing import Iterable, List

from .geodesy import haversine_distance
from .track import Track
from ..config.logging_config import get_logger, log_function_entry, log_function_exit

logger = get_logger(__name__)

DEFAULT_MATCH_RADIUS_MILES = 0.1
DEFAULT_DEDUP_THRESHOLD = 5.0


@dataclass(frozen=True)
class Marker:
    """A named point of interest read from the source file."""
    name: str
    longitude: float
    latitude: float


@dataclass(frozen=True)
class Visit:
    """One proximity match between a marker and a track point."""
    distance: float
    point_index: int


@dataclass(frozen=True)
class MatchedWaypoint:
    """A distinct visit of a marker, located by track distance."""
    name: str
    distance: float

    def to_dict(self) -> dict:
        return {'name': self.name, 'distance': self.distance}


def find_visits(track: Track, marker: Marker, radius_miles: float = DEFAULT_MATCH_RADIUS_MILES) -> List[Visit]:
    """
    Find every track point within radius_miles of a marker.

    Args:
        track: Track with computed distances
        marker: Marker to locate
        radius_miles: Proximity threshold in miles

    Returns:
        Visits sorted by track distance
    """
    visits = []
    for index, point in enumerate(track.points):
        dist = haversine_distance(
            point.latitude, point.longitude,
            marker.latitude, marker.longitude
        )
        if dist < radius_miles:
            visits.append(Visit(distance=point.distance, point_index=index))

    visits.sort(key=lambda v: v.distance)
    return visits


def dedupe_visits(visits: List[Visit], threshold: float = DEFAULT_DEDUP_THRESHOLD) -> List[Visit]:
    """
    Collapse visits belonging to the same physical pass.

    The first visit is always retained; a later visit is retained only if it
    lies more than threshold beyond the last retained one.

    Args:
        visits: Visits sorted by distance
        threshold: Minimum gap between retained visits

    Returns:
        Retained visits in distance order
    """
    retained: List[Visit] = []
    for visit in visits:
        if not retained or (visit.distance - retained[-1].distance) > threshold:
            retained.append(visit)
    return retained


def match_waypoints(track: Track, markers: Iterable[Marker],
                    radius_miles: float = DEFAULT_MATCH_RADIUS_MILES,
                    dedup_threshold: float = DEFAULT_DEDUP_THRESHOLD) -> List[MatchedWaypoint]:
    """
    Match markers onto the track.

    Args:
        track: Track with computed distances
        markers: Raw markers, not deduplicated
        radius_miles: Proximity threshold for a visit
        dedup_threshold: Minimum gap between distinct visits of one marker

    Returns:
        Matched waypoints sorted by distance; empty if nothing matched
    """
    markers = list(markers)
    log_function_entry(logger, "match_waypoints", markers=len(markers), points=len(track))

    waypoints: List[MatchedWaypoint] = []
    for marker in markers:
        visits = dedupe_visits(find_visits(track, marker, radius_miles), dedup_threshold)
        if not visits:
            logger.debug(f"Marker '{marker.name}' is not on the track")
        for visit in visits:
            waypoints.append(MatchedWaypoint(name=marker.name, distance=visit.distance))

    waypoints.sort(key=lambda w: w.distance)

    logger.info(f"Matched {len(waypoints)} waypoint visits from {len(markers)} markers")
    log_function_exit(logger, "match_waypoints", waypoints)
    return waypoints
