#!/usr/bin/env python3
"""
Tests for the track model: distance accumulation and elevation profile.
"""

import math
import os
import sys

import pytest

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from aidplanner.errors import InsufficientDataError, TrackStateError
from aidplanner.processing import build_track, elevation_profile, total_distance
from aidplanner.processing.geodesy import haversine_distance
from aidplanner.processing.track import ElevationProfilePoint, Track, TrackPoint

# Degrees of longitude per mile along the equator
MILE_DEG = 1 / (6371 * math.pi / 180 * 0.621371)

WIGGLY_COORDS = [
    (-123.1207, 49.2827, 50.0),
    (-123.1217, 49.2837, 55.0),
    (-123.1227, 49.2847, 60.0),
    (-123.1237, 49.2857, 45.0),
    (-123.1300, 49.2900, 47.5),
]


def test_requires_two_points():
    with pytest.raises(InsufficientDataError):
        build_track([])
    with pytest.raises(InsufficientDataError):
        build_track([(0.0, 0.0, 10.0)])


def test_insufficient_data_is_a_value_error():
    with pytest.raises(ValueError):
        build_track([(0.0, 0.0, 10.0)])


def test_total_distance_matches_pairwise_sum():
    track = build_track(WIGGLY_COORDS)
    pairwise = sum(
        haversine_distance(a[1], a[0], b[1], b[0])
        for a, b in zip(WIGGLY_COORDS, WIGGLY_COORDS[1:])
    )

    assert track.points[0].distance == 0
    assert track.get_total_distance() == pytest.approx(pairwise)
    assert track.get_total_distance() == track.points[-1].distance
    assert total_distance(track) == track.get_total_distance()


def test_distances_are_non_decreasing():
    track = build_track(WIGGLY_COORDS)
    distances = [p.distance for p in track.points]
    assert distances == sorted(distances)


def test_equator_track_is_measured_in_miles():
    track = build_track([(i * MILE_DEG, 0.0, 0.0) for i in range(4)])
    assert [p.distance for p in track.points] == pytest.approx([0.0, 1.0, 2.0, 3.0])


def test_recompute_is_idempotent():
    track = build_track(WIGGLY_COORDS)
    first = [p.distance for p in track.points]
    track.recompute_distances()
    track.recompute_distances()
    assert [p.distance for p in track.points] == first


def test_replace_points_recomputes_everything():
    track = build_track([(i * MILE_DEG, 0.0, 0.0) for i in range(5)])
    # Stale distances on the incoming points must be overwritten
    track.replace_points([
        TrackPoint(0.0, 0.0, 0.0, distance=99.0),
        TrackPoint(2 * MILE_DEG, 0.0, 0.0, distance=-5.0),
    ])

    assert len(track) == 2
    assert track.points[0].distance == 0
    assert track.points[1].distance == pytest.approx(2.0)
    assert track.get_total_distance() == pytest.approx(2.0)


def test_replace_points_rejects_short_sequences():
    track = build_track(WIGGLY_COORDS)
    with pytest.raises(InsufficientDataError):
        track.replace_points([TrackPoint(0.0, 0.0, 0.0)])


def test_total_distance_before_computation_is_a_state_error():
    track = Track.__new__(Track)
    track._points = []
    track._total_distance = None
    with pytest.raises(TrackStateError):
        track.get_total_distance()


def test_missing_elevation_becomes_nan():
    track = build_track([(0.0, 0.0, None), (MILE_DEG, 0.0)])
    assert all(math.isnan(p.elevation) for p in track.points)


def test_elevation_profile_converts_to_feet():
    track = build_track(WIGGLY_COORDS)
    profile = list(track.get_elevation_profile())

    assert len(profile) == len(track)
    for entry, point in zip(profile, track.points):
        assert entry.distance == point.distance
        assert entry.elevation_ft == pytest.approx(point.elevation * 3.28084)


def test_elevation_profile_is_restartable_and_live():
    track = build_track([(i * MILE_DEG, 0.0, float(i)) for i in range(6)])
    profile = track.get_elevation_profile()

    assert list(profile) == list(profile)
    assert len(profile) == 6

    track.replace_points(track.points[::2])
    assert len(list(profile)) == 3
    assert len(elevation_profile(track)) == 3


def test_index_range_is_inclusive_of_both_miles():
    track = build_track([(i * MILE_DEG, 0.0, 0.0) for i in range(6)])
    assert track.index_range(1.0 - 1e-9, 3.0 + 1e-9) == (1, 4)
    assert track.index_range(2.5, 2.6) == (3, 3)
    assert track.index_range(4.5, 100) == (5, 6)
    assert track.index_range(100, 200) == (6, 6)


def test_points_between_matches_index_range():
    track = build_track([(i * MILE_DEG, 0.0, 0.0) for i in range(10)])
    start, end = track.index_range(2.5, 6.5)
    assert track.points_between(2.5, 6.5) == track.points[start:end]


def test_copy_is_independent():
    track = build_track(WIGGLY_COORDS)
    clone = track.copy()
    clone.replace_points(clone.points[:2])

    assert len(track) == len(WIGGLY_COORDS)
    assert track.points[0] is not clone.points[0]


def test_profile_point_without_elevation_serialises_as_none():
    assert ElevationProfilePoint(distance=1.0, elevation_ft=float('nan')).to_dict() == {
        'distance': 1.0, 'elevation': None,
    }
    assert ElevationProfilePoint(distance=1.0, elevation_ft=328.084).to_dict()['elevation'] == 328.084
