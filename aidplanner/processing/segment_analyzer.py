"""
Segment statistics for the Aid Station Planner.

A segment is the stretch of track between two mile markers. Missing data in a
segment is reported on the result instead of raised, so one bad checkpoint
does not take down a whole report.
"""

from dataclasses import dataclass
from math import floor, isfinite
from typing import Iterable, List, Optional

import pandas as pd

from .track import Track
from ..utils.units import UnitConverter
from ..config.logging_config import get_logger

logger = get_logger(__name__)

START_LABEL = "Start"
FINISH_LABEL = "Finish"


def _round_half_up(value: float) -> int:
    return int(floor(value + 0.5))


@dataclass(frozen=True)
class Checkpoint:
    """A caller-supplied aid station at a mile marker."""
    name: str
    mile: float


@dataclass(frozen=True)
class SegmentStats:
    """Elevation statistics for one segment.

    When ``error`` is set the numeric fields are None.
    """
    start_label: str
    end_label: str
    distance: float
    elevation_gain_ft: Optional[int] = None
    elevation_loss_ft: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result = {
            'start': self.start_label,
            'end': self.end_label,
            'distance': self.distance,
        }
        if self.error is not None:
            result['error'] = self.error
        else:
            result['elevationGain'] = self.elevation_gain_ft
            result['elevationLoss'] = self.elevation_loss_ft
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "SegmentStats":
        return cls(
            start_label=data['start'],
            end_label=data['end'],
            distance=data['distance'],
            elevation_gain_ft=data.get('elevationGain'),
            elevation_loss_ft=data.get('elevationLoss'),
            error=data.get('error'),
        )


def calculate_segment_stats(track: Track, start_mile: float, end_mile: float,
                            start_label: str = "", end_label: str = "") -> SegmentStats:
    """
    Calculate elevation gain and loss between two mile markers.

    Args:
        track: Track with final distances
        start_mile: Segment start in miles
        end_mile: Segment end in miles
        start_label: Name of the starting checkpoint
        end_label: Name of the ending checkpoint

    Returns:
        SegmentStats; carries an error message if no track points fall in range
    """
    points = track.points_between(start_mile, end_mile)
    distance = end_mile - start_mile

    if not points:
        message = f"No track points found between miles {start_mile} and {end_mile}"
        logger.warning(message)
        return SegmentStats(start_label, end_label, distance, error=message)

    elevation_gain = 0.0
    elevation_loss = 0.0
    for prev, curr in zip(points, points[1:]):
        elevation_diff = curr.elevation - prev.elevation
        if not isfinite(elevation_diff):
            continue
        if elevation_diff > 0:
            elevation_gain += elevation_diff
        else:
            elevation_loss += abs(elevation_diff)

    return SegmentStats(
        start_label=start_label,
        end_label=end_label,
        distance=distance,
        elevation_gain_ft=_round_half_up(UnitConverter.meters_to_feet(elevation_gain)),
        elevation_loss_ft=_round_half_up(UnitConverter.meters_to_feet(elevation_loss)),
    )


def sort_checkpoints(checkpoints: Iterable[Checkpoint]) -> List[Checkpoint]:
    """Sort checkpoints by mile marker, keeping input order for ties."""
    return sorted(checkpoints, key=lambda c: c.mile)


def build_segment_report(track: Track, checkpoints: Iterable[Checkpoint]) -> List[SegmentStats]:
    """
    Compute Start -> first -> ... -> last -> Finish segment statistics.

    Args:
        track: Track with final distances
        checkpoints: Aid stations in any order

    Returns:
        One SegmentStats per segment; empty when there are no checkpoints
    """
    stations = sort_checkpoints(checkpoints)
    if not stations:
        return []

    segments = [calculate_segment_stats(track, 0, stations[0].mile, START_LABEL, stations[0].name)]

    for start, end in zip(stations, stations[1:]):
        segments.append(calculate_segment_stats(track, start.mile, end.mile, start.name, end.name))

    last = stations[-1]
    segments.append(
        calculate_segment_stats(track, last.mile, track.get_total_distance(), last.name, FINISH_LABEL)
    )

    failed = sum(1 for s in segments if not s.ok)
    if failed:
        logger.info(f"Segment report: {failed} of {len(segments)} segments had no data")
    return segments


def segments_to_dataframe(segments: Iterable[SegmentStats]) -> pd.DataFrame:
    """Tabulate segment statistics for display or export."""
    rows = [
        {
            'From': s.start_label,
            'To': s.end_label,
            'Distance (mi)': round(s.distance, 1),
            'Gain (ft)': s.elevation_gain_ft,
            'Loss (ft)': s.elevation_loss_ft,
            'Error': s.error,
        }
        for s in segments
    ]
    return pd.DataFrame(rows, columns=['From', 'To', 'Distance (mi)', 'Gain (ft)', 'Loss (ft)', 'Error'])
