"""
Error types for the Aid Station Planner track engine.

Expected, caller-visible conditions (bad input, unknown track id) get their
own classes so callers can tell them apart from programmer faults.
"""


class TrackProcessingError(Exception):
    """Base class for every error raised by the track engine."""


class InsufficientDataError(TrackProcessingError, ValueError):
    """Raised when a track has too few points to be processed."""


class InvalidGeometryError(TrackProcessingError, ValueError):
    """Raised when a track range contains non-finite coordinates."""


class UnsupportedFileError(TrackProcessingError, ValueError):
    """Raised for uploads that are not readable GPX files."""


class TrackNotFoundError(TrackProcessingError, KeyError):
    """Raised when a stored track identifier is unknown."""

    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(track_id)

    def __str__(self) -> str:
        return f"Track '{self.track_id}' not found. Please upload the GPX file again."


class TrackStateError(TrackProcessingError, RuntimeError):
    """Raised when an internal invariant of the track model is violated."""
