"""
Segment smoothing for the Aid Station Planner.

Each stretch of track between consecutive matched waypoints is simplified on
its own with a 3-D Ramer-Douglas-Peucker pass over (longitude, latitude,
elevation). Surviving vertices get provisional distances interpolated across
the stretch; the authoritative distances come from one global recompute once
every stretch has been rebuilt.
"""

import dataclasses
from bisect import bisect_left
from dataclasses import dataclass
from math import isfinite
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .track import Track, TrackPoint
from .waypoint_matcher import MatchedWaypoint
from ..errors import InvalidGeometryError
from ..config.logging_config import get_logger, log_execution_time

logger = get_logger(__name__)

DEFAULT_TOLERANCE = 0.00015


def _sq_segment_distances(coords: np.ndarray, first: int, last: int) -> np.ndarray:
    """Squared distances from coords[first+1:last] to the segment first-last."""
    start = coords[first]
    seg = coords[last] - start
    interior = coords[first + 1:last]
    seg_len_sq = float(np.dot(seg, seg))

    if seg_len_sq == 0.0:
        diff = interior - start
    else:
        t = np.clip((interior - start) @ seg / seg_len_sq, 0.0, 1.0)
        diff = interior - (start + t[:, None] * seg)

    return np.einsum('ij,ij->i', diff, diff)


def _radial_filter(coords: np.ndarray, sq_tolerance: float) -> np.ndarray:
    """Indices of points farther than the tolerance from the previously kept point."""
    kept = [0]
    for i in range(1, len(coords)):
        diff = coords[i] - coords[kept[-1]]
        if float(np.dot(diff, diff)) > sq_tolerance:
            kept.append(i)
    if kept[-1] != len(coords) - 1:
        kept.append(len(coords) - 1)
    return np.asarray(kept)


def simplify_indices(coords: Sequence[Sequence[float]], tolerance: float = DEFAULT_TOLERANCE,
                     high_quality: bool = True) -> List[int]:
    """
    Simplify a polyline and return the indices of the surviving vertices.

    Args:
        coords: Ordered vertices, any dimension (rows of equal length)
        tolerance: Maximum allowed deviation from the simplified line
        high_quality: Skip the radial-distance pre-pass

    Returns:
        Sorted indices into coords; both endpoints are always included
    """
    coords = np.asarray(coords, dtype=float)
    count = len(coords)
    if count <= 2:
        return list(range(count))

    sq_tolerance = tolerance * tolerance
    candidates = np.arange(count) if high_quality else _radial_filter(coords, sq_tolerance)
    work = coords[candidates]

    keep = np.zeros(len(work), dtype=bool)
    keep[0] = keep[-1] = True

    stack: List[Tuple[int, int]] = [(0, len(work) - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue
        sq_dists = _sq_segment_distances(work, first, last)
        offset = int(np.argmax(sq_dists))
        if sq_dists[offset] > sq_tolerance:
            index = first + 1 + offset
            keep[index] = True
            stack.append((first, index))
            stack.append((index, last))

    return [int(i) for i in candidates[keep]]


@dataclass
class SimplifiedRange:
    """Result of simplifying one stretch of track."""
    start_index: int
    end_index: int  # exclusive
    source_indices: List[int]
    points: List[TrackPoint]


class SegmentSmoother:
    """Simplifies a track stretch by stretch between matched waypoints."""

    def __init__(self, track: Track, tolerance: float = DEFAULT_TOLERANCE, high_quality: bool = True):
        """
        Args:
            track: Track to smooth in place
            tolerance: Simplification tolerance in coordinate-degree units
            high_quality: Skip the radial-distance pre-pass
        """
        self.track = track
        self.tolerance = tolerance
        self.high_quality = high_quality
        # Filled by smooth_all: distances before the rebuild and, per rebuilt
        # point, the index it had before
        self._source_distances: List[float] = []
        self._source_indices: List[int] = []

    def simplify_range(self, start_mile: float, end_mile: float) -> Optional[SimplifiedRange]:
        """
        Simplify the points with start_mile <= distance <= end_mile.

        The track is not modified.

        Returns:
            The simplified stretch, or None when it has fewer than two points

        Raises:
            InvalidGeometryError: If a selected point has a non-finite coordinate
        """
        start_index, end_index = self.track.index_range(start_mile, end_mile)
        selected = self.track.points[start_index:end_index]
        if len(selected) < 2:
            return None

        for point in selected:
            if not (isfinite(point.longitude) and isfinite(point.latitude) and isfinite(point.elevation)):
                raise InvalidGeometryError(
                    f"Non-finite coordinates between miles {start_mile:.2f} and {end_mile:.2f}"
                )

        coords = [(p.longitude, p.latitude, p.elevation) for p in selected]
        kept = simplify_indices(coords, self.tolerance, self.high_quality)

        seg_start = selected[0].distance
        seg_end = selected[-1].distance
        last = len(kept) - 1
        points = [
            TrackPoint(
                longitude=selected[k].longitude,
                latitude=selected[k].latitude,
                elevation=selected[k].elevation,
                distance=seg_start + (idx / last) * (seg_end - seg_start),
            )
            for idx, k in enumerate(kept)
        ]

        return SimplifiedRange(
            start_index=start_index,
            end_index=end_index,
            source_indices=[start_index + k for k in kept],
            points=points,
        )

    def smooth_segment(self, start_mile: float, end_mile: float) -> bool:
        """
        Simplify one stretch and splice it into the track.

        Returns:
            True if the stretch was replaced, False if it was skipped
        """
        try:
            result = self.simplify_range(start_mile, end_mile)
        except InvalidGeometryError as e:
            logger.warning(f"Skipping smoothing: {e}")
            return False
        except Exception as e:
            logger.warning(
                f"Smoothing failed between miles {start_mile:.2f} and {end_mile:.2f}, "
                f"keeping original points: {type(e).__name__}: {e}"
            )
            return False

        if result is None:
            return False

        points = self.track.points
        self.track.replace_points(points[:result.start_index] + result.points + points[result.end_index:])
        return True

    def sub_ranges(self, waypoints: Iterable[MatchedWaypoint]) -> List[Tuple[float, float]]:
        """Stretches delimited by the waypoint distances, from 0 to the track total."""
        total = self.track.get_total_distance()
        marks = sorted(w.distance for w in waypoints if 0.0 <= w.distance <= total)
        bounds = [0.0] + marks + [total]
        return list(zip(bounds, bounds[1:]))

    def smooth_all(self, waypoints: Iterable[MatchedWaypoint]) -> int:
        """
        Smooth every stretch between waypoints and rebuild the track once.

        A stretch that fails to simplify is left as recorded.

        Returns:
            Number of stretches that were simplified
        """
        points = self.track.points
        rebuilt: List[TrackPoint] = []
        sources: List[int] = []
        last_emitted = -1
        smoothed = 0

        for start_mile, end_mile in self.sub_ranges(waypoints):
            try:
                result = self.simplify_range(start_mile, end_mile)
            except Exception as e:
                logger.warning(
                    f"Smoothing failed between miles {start_mile:.2f} and {end_mile:.2f}, "
                    f"keeping original points: {type(e).__name__}: {e}"
                )
                result = None

            if result is None:
                start_index, end_index = self.track.index_range(start_mile, end_mile)
                indices = list(range(start_index, end_index))
                stretch = [dataclasses.replace(points[i]) for i in indices]
            else:
                indices = result.source_indices
                stretch = result.points
                smoothed += 1

            # Boundary points are shared by neighbouring stretches
            for index, point in zip(indices, stretch):
                if index > last_emitted:
                    rebuilt.append(point)
                    sources.append(index)
                    last_emitted = index

        for index in range(last_emitted + 1, len(points)):
            rebuilt.append(dataclasses.replace(points[index]))
            sources.append(index)

        self._source_distances = [p.distance for p in points]
        self._source_indices = sources

        before = len(points)
        self.track.replace_points(rebuilt)
        logger.info(f"Smoothed {smoothed} stretches: {before} -> {len(rebuilt)} points")
        return smoothed

    def relocate(self, waypoints: Iterable[MatchedWaypoint]) -> List[MatchedWaypoint]:
        """
        Move waypoints matched before smooth_all onto the rebuilt track.

        Each waypoint sits on the point it was matched to, which smooth_all
        always keeps as a stretch boundary; its distance is read back from
        that point after the global recompute.

        Returns:
            Waypoints with distances on the current track, in distance order
        """
        waypoints = list(waypoints)
        if not self._source_indices:
            return waypoints

        points = self.track.points
        relocated = []
        for waypoint in waypoints:
            source = bisect_left(self._source_distances, waypoint.distance)
            position = min(bisect_left(self._source_indices, source), len(points) - 1)
            relocated.append(MatchedWaypoint(name=waypoint.name, distance=points[position].distance))

        relocated.sort(key=lambda w: w.distance)
        return relocated


@log_execution_time()
def smooth(track: Track, waypoints: Iterable[MatchedWaypoint], enabled: bool,
           tolerance: float = DEFAULT_TOLERANCE, high_quality: bool = True) -> Track:
    """
    Smooth a track between its matched waypoints.

    Args:
        track: Track to smooth in place
        waypoints: Matched waypoints delimiting the stretches
        enabled: When False the track is returned untouched
        tolerance: Simplification tolerance in coordinate-degree units
        high_quality: Skip the radial-distance pre-pass

    Returns:
        The same track instance
    """
    if not enabled:
        logger.debug("Smoothing disabled, using track as parsed")
        return track

    SegmentSmoother(track, tolerance, high_quality).smooth_all(waypoints)
    return track


@log_execution_time()
def smooth_matched(track: Track, waypoints: Iterable[MatchedWaypoint], enabled: bool,
                   tolerance: float = DEFAULT_TOLERANCE, high_quality: bool = True) -> List[MatchedWaypoint]:
    """
    Smooth a track like smooth() and return its waypoints on the result.

    Returns:
        The waypoints with distances read from the smoothed track; unchanged
        when smoothing is disabled
    """
    waypoints = list(waypoints)
    if not enabled:
        logger.debug("Smoothing disabled, using track as parsed")
        return waypoints

    smoother = SegmentSmoother(track, tolerance, high_quality)
    smoother.smooth_all(waypoints)
    return smoother.relocate(waypoints)
