"""
Track Store for the Aid Station Planner.

Keeps parsed tracks between the upload step and later segment calculations,
keyed by an opaque identifier. Only parsed inputs are stored; every load
hands back a fresh copy so no two callers ever share a track model.
"""

import copy
import json
import os
import threading
import uuid
from typing import Dict, List, Optional

from ..errors import TrackNotFoundError
from ..processing.gpx_parser import ParsedTrack
from ..config.logging_config import get_logger, log_function_entry, log_function_exit

logger = get_logger(__name__)


class TrackStore:
    """Key-value store of parsed tracks with optional local JSON persistence."""

    def __init__(self, data_dir: Optional[str] = None):
        """
        Args:
            data_dir: Directory for JSON copies of stored tracks; memory only when None
        """
        self.data_dir = data_dir
        self._tracks: Dict[str, ParsedTrack] = {}
        self._lock = threading.Lock()

        if self.data_dir:
            self._ensure_local_directory()

        logger.info(f"Track store initialized - Local: {self.data_dir or 'memory only'}")

    def _ensure_local_directory(self):
        os.makedirs(self.data_dir, exist_ok=True)
        logger.debug(f"Local directory ensured: {self.data_dir}")

    def _get_local_filepath(self, track_id: str) -> str:
        return os.path.join(self.data_dir, f"{track_id}.json")

    @staticmethod
    def new_track_id() -> str:
        return uuid.uuid4().hex

    def save(self, parsed: ParsedTrack, track_id: Optional[str] = None) -> str:
        """
        Store a parsed track.

        Args:
            parsed: Parsed GPX content
            track_id: Identifier to store under; generated when omitted

        Returns:
            The identifier the track was stored under
        """
        track_id = track_id or self.new_track_id()
        log_function_entry(logger, "save", track_id=track_id, points=len(parsed.coordinates))

        with self._lock:
            self._tracks[track_id] = copy.deepcopy(parsed)

        if self.data_dir:
            self._save_local(track_id, parsed)

        log_function_exit(logger, "save", track_id)
        return track_id

    def _save_local(self, track_id: str, parsed: ParsedTrack):
        filepath = self._get_local_filepath(track_id)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(parsed.to_dict(), f, ensure_ascii=False)
        logger.debug(f"Saved to local file: {filepath}")

    def load(self, track_id: str) -> ParsedTrack:
        """
        Load a parsed track by identifier.

        Raises:
            TrackNotFoundError: If nothing is stored under track_id
        """
        with self._lock:
            parsed = self._tracks.get(track_id)
            if parsed is not None:
                return copy.deepcopy(parsed)

        parsed = self._load_local(track_id)
        if parsed is None:
            logger.warning(f"Track not found: {track_id}")
            raise TrackNotFoundError(track_id)

        with self._lock:
            self._tracks[track_id] = copy.deepcopy(parsed)
        return parsed

    def _load_local(self, track_id: str) -> Optional[ParsedTrack]:
        if not self.data_dir or not self._is_safe_id(track_id):
            return None

        filepath = self._get_local_filepath(track_id)
        if not os.path.exists(filepath):
            return None

        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.debug(f"Loaded from local file: {filepath}")
        return ParsedTrack.from_dict(data)

    @staticmethod
    def _is_safe_id(track_id: str) -> bool:
        return bool(track_id) and os.path.basename(track_id) == track_id and track_id not in (".", "..")

    def contains(self, track_id: str) -> bool:
        with self._lock:
            if track_id in self._tracks:
                return True
        return bool(self.data_dir) and self._is_safe_id(track_id) and os.path.exists(self._get_local_filepath(track_id))

    def delete(self, track_id: str) -> bool:
        """Remove a track from memory and disk. Returns True if anything was removed."""
        with self._lock:
            removed = self._tracks.pop(track_id, None) is not None

        if self.data_dir and self._is_safe_id(track_id):
            filepath = self._get_local_filepath(track_id)
            if os.path.exists(filepath):
                os.remove(filepath)
                removed = True

        return removed

    def list_ids(self) -> List[str]:
        """Identifiers of all stored tracks, sorted."""
        with self._lock:
            ids = set(self._tracks)
        if self.data_dir and os.path.isdir(self.data_dir):
            ids.update(
                name[:-len(".json")] for name in os.listdir(self.data_dir) if name.endswith(".json")
            )
        return sorted(ids)
