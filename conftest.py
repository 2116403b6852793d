"""
Shared pytest fixtures: GPX documents for an out-and-back course.
"""

import math

import pytest

MILE_DEG = 1 / (6371 * math.pi / 180 * 0.621371)


def build_out_and_back_gpx(turnaround_miles: float = 10.0, step_miles: float = 0.04, waypoints=None) -> str:
    """GPX for a course east along the equator and back, with rolling elevation."""
    steps = int(round(turnaround_miles / step_miles))
    out = [i * step_miles for i in range(steps + 1)]
    miles = out + out[-2::-1]

    trkpts = "\n".join(
        f'      <trkpt lat="0.0" lon="{mile * MILE_DEG:.9f}"><ele>{100 + 20 * math.sin(mile):.2f}</ele></trkpt>'
        for mile in miles
    )
    wpts = "\n".join(
        f'  <wpt lat="0.0" lon="{mile * MILE_DEG:.9f}"><name>{name}</name></wpt>'
        for name, mile in (waypoints or [])
    )

    return f"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="aidplanner tests" xmlns="http://www.topografix.com/GPX/1/1">
{wpts}
  <trk>
    <name>Out and Back</name>
    <trkseg>
{trkpts}
    </trkseg>
  </trk>
</gpx>"""


@pytest.fixture
def out_and_back_gpx() -> str:
    """Ten miles out and back with a shared start/finish and one aid station passed twice."""
    return build_out_and_back_gpx(waypoints=[
        ("Start/Finish", 0.0),
        ("Creek", 4.0),
        ("Turnaround", 10.0),
    ])


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration variables that would change defaults."""
    for name in (
        "LOG_LEVEL", "LOG_TO_FILE", "DATA_DIRECTORY", "MAX_FILE_SIZE_MB", "ENABLE_SMOOTHING",
        "PERSIST_TRACKS", "MATCH_RADIUS_MILES", "VISIT_DEDUP_THRESHOLD", "SMOOTHING_TOLERANCE",
        "SMOOTHING_HIGH_QUALITY", "AID_STATION_LOOKUP_MILES",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
