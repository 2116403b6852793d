from .track_store import TrackStore

__all__ = ['TrackStore']
