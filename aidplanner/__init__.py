"""
Aid Station Planner

Track-processing engine for endurance events:
- Cumulative mileage and elevation profile from a GPS track
- Matching of named GPX waypoints onto the track (loop courses included)
- Optional per-segment smoothing between matched waypoints
- Elevation gain/loss between arbitrary checkpoint mile markers
"""

__version__ = "0.3.0"
