"""
Track processing engine for the Aid Station Planner.

Core operations:
- build_track: coordinates to a distance-annotated track
- match_waypoints: named markers to distinct visits along the track
- smooth: optional simplification between matched waypoints
- segment_stats: elevation gain/loss between two mile markers
- elevation_profile / total_distance: read-only views of the track

The orchestrating TrackProcessor lives in
``aidplanner.processing.track_processor``.
"""

from typing import List

from .geodesy import haversine_distance
from .track import Track, TrackPoint, ElevationProfilePoint, build_track
from .waypoint_matcher import Marker, MatchedWaypoint, match_waypoints
from .smoother import SegmentSmoother, smooth, smooth_matched
from .segment_analyzer import Checkpoint, SegmentStats, calculate_segment_stats, build_segment_report


def segment_stats(track: Track, start_mile: float, end_mile: float) -> SegmentStats:
    """Elevation gain/loss between two mile markers."""
    return calculate_segment_stats(track, start_mile, end_mile)


def elevation_profile(track: Track) -> List[ElevationProfilePoint]:
    """Elevation profile of the track's current points, in feet."""
    return list(track.get_elevation_profile())


def total_distance(track: Track) -> float:
    """Total track distance in miles."""
    return track.get_total_distance()


__all__ = [
    'haversine_distance',
    'Track', 'TrackPoint', 'ElevationProfilePoint', 'build_track',
    'Marker', 'MatchedWaypoint', 'match_waypoints',
    'SegmentSmoother', 'smooth', 'smooth_matched',
    'Checkpoint', 'SegmentStats', 'calculate_segment_stats', 'build_segment_report',
    'segment_stats', 'elevation_profile', 'total_distance',
]
