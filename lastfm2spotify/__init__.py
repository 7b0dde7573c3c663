"""
lastfm2spotify - Mirror Last.fm stations into Spotify playlists.

Features:
- Per-user playlists from library, mix and recommended stations
- Blended playlists that interleave several users' stations
- Track lookups cached on disk (hits and misses), with a size limit
- Retries with exponential backoff, honoring Retry-After
- Existing playlists are updated in place, never duplicated
"""

import logging

from .auth import open_spotify_session
from .blend import blend
from .cache import PersistentCache
from .models import PlaylistDetails, StationType, TrackCandidate
from .resolver import TrackResolver
from .retry_utils import RemoteCallError, RetryOptions, execute_with_retry
from .sync_engine import SyncEngine
from .sync_playlists import PlaylistSynchronizer

__all__ = [
    "SyncEngine",
    "PersistentCache",
    "TrackResolver",
    "PlaylistSynchronizer",
    "PlaylistDetails",
    "StationType",
    "TrackCandidate",
    "RemoteCallError",
    "RetryOptions",
    "blend",
    "execute_with_retry",
    "open_spotify_session",
]

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
