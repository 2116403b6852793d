"""
Track processing orchestrator for the Aid Station Planner.

Runs the full pipeline for an uploaded GPX file (parse, build, match
waypoints, optional smoothing) and produces the checkpoint segment report.
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .gpx_parser import ParsedTrack, parse_gpx
from .track import Track, build_track
from .waypoint_matcher import MatchedWaypoint, match_waypoints
from .smoother import smooth_matched
from .segment_analyzer import Checkpoint, SegmentStats, build_segment_report, sort_checkpoints
from ..errors import UnsupportedFileError
from ..storage.track_store import TrackStore
from ..config.config import ConfigManager, get_config
from ..config.logging_config import get_logger, log_function_entry, log_function_exit, log_performance

logger = get_logger(__name__)

CheckpointInput = Union[Checkpoint, Dict[str, Any]]


@dataclass
class ProcessedTrack:
    """Outcome of one processing run."""
    track: Track
    waypoints: List[MatchedWaypoint]


def to_checkpoint(item: CheckpointInput) -> Checkpoint:
    """Accept a Checkpoint or a {'name': ..., 'mile': ...} mapping."""
    if isinstance(item, Checkpoint):
        return item
    try:
        return Checkpoint(name=str(item['name']), mile=float(item['mile']))
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid checkpoint {item!r}: expected name and numeric mile") from e


class TrackProcessor:
    """Handles GPX uploads and checkpoint segment calculations."""

    def __init__(self, store: Optional[TrackStore] = None, config: Optional[ConfigManager] = None):
        """Initialize the track processor.

        Args:
            store: Track store for uploaded tracks; built from configuration when omitted
            config: Configuration manager; the global one when omitted
        """
        self.config = config or get_config()
        if store is None:
            data_dir = self.config.app.data_directory if self.config.app.persist_tracks else None
            store = TrackStore(data_dir)
        self.store = store

        logger.info("TrackProcessor initialized")
        logger.debug(f"Smoothing enabled: {self.config.app.enable_smoothing}")

    def _check_upload(self, content: Union[bytes, str], filename: str) -> str:
        extension = os.path.splitext(filename)[1].lower().lstrip('.')
        if extension not in self.config.app.supported_file_types:
            logger.warning(f"Unsupported file type attempted: {extension} for file {filename}")
            raise UnsupportedFileError("Only GPX files are allowed")

        size_mb = len(content) / (1024 * 1024)
        if size_mb > self.config.app.max_file_size_mb:
            raise UnsupportedFileError(
                f"File too large: {size_mb:.1f} MB (limit {self.config.app.max_file_size_mb} MB)"
            )

        if isinstance(content, bytes):
            try:
                return content.decode('utf-8')
            except UnicodeDecodeError as e:
                logger.error(f"UTF-8 decode error for file {filename}: {e}")
                raise UnsupportedFileError("Invalid GPX file: Unable to decode as UTF-8") from e
        return content

    def run(self, parsed: ParsedTrack, enable_smoothing: Optional[bool] = None) -> ProcessedTrack:
        """
        Build a fresh track from parsed input, match waypoints, and smooth.

        Waypoints are matched on the track as parsed; smoothing then uses
        them as stretch boundaries, and the returned waypoints carry their
        distances on the final track.

        Args:
            parsed: Parsed GPX content
            enable_smoothing: Overrides the configured smoothing flag

        Returns:
            ProcessedTrack with the final track and its matched waypoints
        """
        if enable_smoothing is None:
            enable_smoothing = self.config.app.enable_smoothing
        settings = self.config.processing

        track = build_track(parsed.coordinates, name=parsed.name)
        waypoints = match_waypoints(
            track, parsed.markers,
            radius_miles=settings.match_radius_miles,
            dedup_threshold=settings.visit_dedup_threshold,
        )
        waypoints = smooth_matched(
            track, waypoints, enable_smoothing,
            tolerance=settings.smoothing_tolerance,
            high_quality=settings.smoothing_high_quality,
        )
        return ProcessedTrack(track=track, waypoints=waypoints)

    def process_upload(self, content: Union[bytes, str], filename: str,
                       enable_smoothing: Optional[bool] = None) -> Dict[str, Any]:
        """
        Parse and store an uploaded GPX file.

        Args:
            content: Raw file content
            filename: Original file name
            enable_smoothing: Overrides the configured smoothing flag

        Returns:
            Dictionary with track_id, filename, waypoints and total_distance
        """
        log_function_entry(logger, "process_upload", filename=filename, size_bytes=len(content))
        start_time = time.time()

        gpx_content = self._check_upload(content, filename)
        parsed = parse_gpx(gpx_content)
        processed = self.run(parsed, enable_smoothing)
        track_id = self.store.save(parsed)

        result = {
            'track_id': track_id,
            'filename': filename,
            'message': 'File uploaded successfully',
            'waypoints': [w.to_dict() for w in processed.waypoints],
            'total_distance': processed.track.get_total_distance(),
        }

        log_performance(logger, f"process_upload({filename})", time.time() - start_time,
                        f"points={len(processed.track)}, waypoints={len(processed.waypoints)}")
        log_function_exit(logger, "process_upload", result)
        return result

    def build_report(self, track: Track, checkpoints: Iterable[CheckpointInput]) -> Dict[str, Any]:
        """
        Segment statistics, elevation profile and aid station summary for a track.

        Args:
            track: Processed track
            checkpoints: Aid stations in any order

        Returns:
            Dictionary with segments, elevation_profile and aid_stations
        """
        stations = sort_checkpoints(to_checkpoint(c) for c in checkpoints)
        segments: List[SegmentStats] = build_segment_report(track, stations)
        profile = [p.to_dict() for p in track.get_elevation_profile()]
        lookup = self.config.processing.aid_station_lookup_miles

        aid_stations = []
        for station in stations:
            # A station near a point without elevation reads as 0
            elevation = next(
                (p['elevation'] for p in profile if abs(p['distance'] - station.mile) < lookup),
                None
            ) or 0
            aid_stations.append({'name': station.name, 'mile': station.mile, 'elevation': elevation})

        return {
            'segments': [s.to_dict() for s in segments],
            'elevation_profile': profile,
            'aid_stations': aid_stations,
        }

    def calculate(self, track_id: str, checkpoints: Iterable[CheckpointInput],
                  enable_smoothing: Optional[bool] = None) -> Dict[str, Any]:
        """
        Compute the checkpoint report for a previously uploaded track.

        Raises:
            TrackNotFoundError: If track_id is unknown
        """
        log_function_entry(logger, "calculate", track_id=track_id)
        parsed = self.store.load(track_id)
        processed = self.run(parsed, enable_smoothing)
        report = self.build_report(processed.track, checkpoints)
        log_function_exit(logger, "calculate", report)
        return report

    def process_file(self, file_path: str, checkpoints: Optional[Iterable[CheckpointInput]] = None,
                     enable_smoothing: Optional[bool] = None) -> Dict[str, Any]:
        """
        Run the whole pipeline on a GPX file from disk.

        When no checkpoints are given, the matched waypoints are used.

        Returns:
            The report dictionary plus 'waypoints' and 'total_distance'
        """
        log_function_entry(logger, "process_file", file_path=file_path)

        with open(file_path, 'rb') as f:
            content = f.read()
        gpx_content = self._check_upload(content, os.path.basename(file_path))
        processed = self.run(parse_gpx(gpx_content), enable_smoothing)

        if checkpoints is None:
            checkpoints = [Checkpoint(name=w.name, mile=w.distance) for w in processed.waypoints]

        report = self.build_report(processed.track, checkpoints)
        report['waypoints'] = [w.to_dict() for w in processed.waypoints]
        report['total_distance'] = processed.track.get_total_distance()

        log_function_exit(logger, "process_file", report)
        return report
