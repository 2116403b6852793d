"""
Track model for the Aid Station Planner.

A Track owns the ordered, distance-annotated sequence of track points. Point
distances are derived values: they are recomputed from the coordinates every
time the sequence changes and are never edited by callers.
"""

import copy
from dataclasses import dataclass
from math import isfinite
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .geodesy import haversine_distance
from ..errors import InsufficientDataError, TrackStateError
from ..utils.units import UnitConverter
from ..config.logging_config import get_logger

logger = get_logger(__name__)

MIN_TRACK_POINTS = 2


@dataclass
class TrackPoint:
    """A single recorded point of the track."""
    longitude: float
    latitude: float
    elevation: float  # meters
    distance: float = 0.0  # cumulative miles from track start


@dataclass(frozen=True)
class ElevationProfilePoint:
    """Unit-converted view of one track point."""
    distance: float
    elevation_ft: float

    def to_dict(self) -> dict:
        """JSON-safe mapping; a missing elevation becomes None."""
        elevation = self.elevation_ft if isfinite(self.elevation_ft) else None
        return {'distance': self.distance, 'elevation': elevation}


class ElevationProfile:
    """Lazy, restartable view of a track's elevation profile in feet.

    Iterating twice walks the track's current points twice; nothing is copied.
    """

    def __init__(self, track: "Track"):
        self._track = track

    def __iter__(self) -> Iterator[ElevationProfilePoint]:
        for point in self._track.points:
            yield ElevationProfilePoint(
                distance=point.distance,
                elevation_ft=UnitConverter.meters_to_feet(point.elevation),
            )

    def __len__(self) -> int:
        return len(self._track.points)


class Track:
    """Ordered sequence of track points with cumulative distances."""

    def __init__(self, points: Sequence[TrackPoint], name: str = None):
        """Initialize the track and compute distances.

        Args:
            points: Track points in traversal order
            name: Optional track name from the source file

        Raises:
            InsufficientDataError: If fewer than two points are given
        """
        self.name = name
        self._points: List[TrackPoint] = []
        self._total_distance: Optional[float] = None
        self.replace_points(points)

    @property
    def points(self) -> List[TrackPoint]:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def replace_points(self, points: Sequence[TrackPoint]) -> None:
        """Install a new point sequence and recompute all distances."""
        points = list(points)
        if len(points) < MIN_TRACK_POINTS:
            raise InsufficientDataError(
                f"Not enough track points to calculate distances "
                f"(got {len(points)}, need at least {MIN_TRACK_POINTS})"
            )
        self._points = points
        self.recompute_distances()

    def recompute_distances(self) -> float:
        """Walk the sequence once and rebuild cumulative distances.

        Returns:
            Total track distance in miles
        """
        if len(self._points) < MIN_TRACK_POINTS:
            raise InsufficientDataError("Not enough track points to calculate distances")

        total = 0.0
        self._points[0].distance = 0.0
        for prev, curr in zip(self._points, self._points[1:]):
            total += haversine_distance(
                prev.latitude, prev.longitude,
                curr.latitude, curr.longitude
            )
            curr.distance = total

        self._total_distance = total
        logger.debug(f"Recomputed distances for {len(self._points)} points, total {total:.3f} mi")
        return total

    def get_total_distance(self) -> float:
        """Get the cached total distance in miles."""
        if self._total_distance is None:
            raise TrackStateError("Track distances have not been computed")
        return self._total_distance

    def get_elevation_profile(self) -> ElevationProfile:
        """Get the elevation profile (distance in miles, elevation in feet)."""
        return ElevationProfile(self)

    def index_range(self, start_mile: float, end_mile: float) -> Tuple[int, int]:
        """Get the half-open index range covering [start_mile, end_mile].

        The range starts at the first point with distance >= start_mile and
        stops at the first point with distance > end_mile.
        """
        count = len(self._points)
        start = next(
            (i for i, p in enumerate(self._points) if p.distance >= start_mile),
            count
        )
        end = next(
            (i for i in range(start, count) if self._points[i].distance > end_mile),
            count
        )
        return start, end

    def points_between(self, start_mile: float, end_mile: float) -> List[TrackPoint]:
        """Get the points with start_mile <= distance <= end_mile, in order."""
        after_start = [p for p in self._points if p.distance >= start_mile]
        return [p for p in after_start if p.distance <= end_mile]

    def copy(self) -> "Track":
        """Get an independent deep copy of this track."""
        return copy.deepcopy(self)


def build_track(coordinates: Iterable[Sequence[float]], name: str = None) -> Track:
    """
    Build a track from raw (longitude, latitude, elevation) coordinates.

    Args:
        coordinates: Ordered coordinate tuples; a missing elevation is stored as NaN
        name: Optional track name

    Returns:
        Track with distances computed

    Raises:
        InsufficientDataError: If fewer than two coordinates are given
    """
    points = []
    for coord in coordinates:
        elevation = coord[2] if len(coord) > 2 and coord[2] is not None else float('nan')
        points.append(TrackPoint(
            longitude=float(coord[0]),
            latitude=float(coord[1]),
            elevation=float(elevation),
        ))

    track = Track(points, name=name)
    logger.info(f"Built track with {len(track)} points, {track.get_total_distance():.2f} miles")
    return track
