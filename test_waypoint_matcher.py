#!/usr/bin/env python3
"""
Tests for matching GPX markers onto the track, including loop courses.
"""

import math
import os
import sys

import pytest

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from aidplanner.processing import build_track, match_waypoints
from aidplanner.processing.waypoint_matcher import Marker, MatchedWaypoint, Visit, dedupe_visits, find_visits

MILE_DEG = 1 / (6371 * math.pi / 180 * 0.621371)


def out_and_back(turnaround_miles: float, step_miles: float):
    """Coordinates east along the equator to the turnaround and back again."""
    steps = int(round(turnaround_miles / step_miles))
    out = [i * step_miles * MILE_DEG for i in range(steps + 1)]
    lons = out + out[-2::-1]
    return [(lon, 0.0, 100.0) for lon in lons]


def marker_at(name: str, mile: float) -> Marker:
    return Marker(name=name, longitude=mile * MILE_DEG, latitude=0.0)


def test_dedup_collapses_visits_three_apart():
    visits = [Visit(distance=10.0, point_index=5), Visit(distance=13.0, point_index=9)]
    assert dedupe_visits(visits) == [visits[0]]


def test_dedup_keeps_visits_six_apart():
    visits = [Visit(distance=10.0, point_index=5), Visit(distance=16.0, point_index=9)]
    assert dedupe_visits(visits) == visits


def test_dedup_measures_from_last_retained_visit():
    visits = [Visit(d, i) for i, d in enumerate([0.0, 3.0, 5.5, 8.0, 10.6])]
    # 3.0 and 5.5 fall within 5 of 0.0; 8.0 is within 5 of 5.5 but not of 0.0
    assert [v.distance for v in dedupe_visits(visits)] == [0.0, 8.0]


def test_dedup_threshold_is_strict():
    visits = [Visit(0.0, 0), Visit(5.0, 1)]
    assert len(dedupe_visits(visits)) == 1


def test_find_visits_sorted_by_distance():
    track = build_track(out_and_back(turnaround_miles=10, step_miles=0.04))
    visits = find_visits(track, marker_at("Mile 4", 4.0))

    distances = [v.distance for v in visits]
    assert distances == sorted(distances)
    assert len(visits) == 10  # five points within 0.1 mi on each pass
    assert all(track.points[v.point_index].distance == v.distance for v in visits)


def test_two_visits_five_point_seven_apart_are_both_kept():
    # Out to 7.05 miles and back passes mile 4.2 again at 9.9
    track = build_track(out_and_back(turnaround_miles=7.05, step_miles=0.15))
    waypoints = match_waypoints(track, [marker_at("Ridge", 4.2)])

    assert [w.name for w in waypoints] == ["Ridge", "Ridge"]
    assert waypoints[0].distance == pytest.approx(4.2)
    assert waypoints[1].distance == pytest.approx(9.9)


def test_out_and_back_course():
    track = build_track(out_and_back(turnaround_miles=10, step_miles=0.04))
    markers = [
        marker_at("Turnaround", 10.0),
        marker_at("Start/Finish", 0.0),
        marker_at("Creek", 4.0),
    ]
    waypoints = match_waypoints(track, markers)

    assert [w.name for w in waypoints] == ["Start/Finish", "Creek", "Turnaround", "Creek", "Start/Finish"]
    assert [w.distance for w in waypoints] == pytest.approx([0.0, 3.92, 9.92, 15.92, 19.92], abs=1e-6)


def test_waypoints_are_sorted_by_distance():
    track = build_track(out_and_back(turnaround_miles=10, step_miles=0.04))
    markers = [marker_at(f"M{i}", mile) for i, mile in enumerate([9.0, 1.0, 6.5, 3.0])]
    distances = [w.distance for w in match_waypoints(track, markers)]
    assert distances == sorted(distances)


def test_markers_off_course_match_nothing():
    track = build_track(out_and_back(turnaround_miles=2, step_miles=0.25))
    far_away = Marker(name="Elsewhere", longitude=10.0, latitude=10.0)
    assert match_waypoints(track, [far_away]) == []
    assert match_waypoints(track, []) == []


def test_duplicate_markers_are_not_merged():
    track = build_track(out_and_back(turnaround_miles=2, step_miles=0.25))
    markers = [marker_at("Aid", 1.0), marker_at("Aid", 1.0)]
    # Each marker matches the out and back passes (1.0 and 3.0 are within 5)
    assert len(match_waypoints(track, markers)) == 2


def test_matched_waypoint_serializes():
    assert MatchedWaypoint(name="Aid", distance=1.5).to_dict() == {'name': "Aid", 'distance': 1.5}
