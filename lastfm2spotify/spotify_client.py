"""
Spotify API client wrapper.

Every call runs in a worker thread, is paced by the rate limiter and goes
through the retry executor. spotipy errors are translated to RemoteCallError
so rate-limit delays reach the retry loop as a plain field.
"""

import asyncio
import logging
from typing import Callable, List, Optional

import spotipy
from spotipy.exceptions import SpotifyException

from .rate_limiter import RateLimiter
from .retry_utils import RemoteCallError, RetryOptions, execute_with_retry

logger = logging.getLogger(__name__)

# Spotify accepts at most 100 items per playlist add/remove request
PLAYLIST_CHUNK_SIZE = 100


def _retry_after_seconds(headers) -> Optional[float]:
    if not headers:
        return None
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def to_remote_error(exc: SpotifyException) -> RemoteCallError:
    """Convert a spotipy error into a RemoteCallError with any Retry-After delay."""
    return RemoteCallError(
        f"Spotify API error {exc.http_status}: {exc.msg}",
        retry_after=_retry_after_seconds(getattr(exc, "headers", None)),
        status=exc.http_status,
    )


def _chunks(items: List[str], size: int = PLAYLIST_CHUNK_SIZE) -> List[List[str]]:
    return [items[i : i + size] for i in range(0, len(items), size)]


class SpotifyClient:
    """Wrapper for the Spotify API with retries and paginated data fetching."""

    def __init__(
        self,
        session: spotipy.Spotify,
        rate_limiter: Optional[RateLimiter] = None,
        retry_options: Optional[RetryOptions] = None,
    ):
        self.session = session
        self.rate_limiter = rate_limiter or RateLimiter(0)
        self.retry_options = retry_options
        self._user_id: Optional[str] = None

    async def _call(self, func: Callable, *args, **kwargs):
        """Run a blocking spotipy method with pacing and retries."""

        async def operation():
            async with self.rate_limiter:
                try:
                    return await asyncio.to_thread(func, *args, **kwargs)
                except SpotifyException as e:
                    raise to_remote_error(e) from e

        return await execute_with_retry(operation, self.retry_options)

    # =========================================================================
    # Reading
    # =========================================================================

    async def current_user_id(self) -> str:
        """Get (and remember) the authenticated user's ID."""
        if self._user_id is None:
            user = await self._call(self.session.current_user)
            self._user_id = user["id"]
        return self._user_id

    async def search_tracks(self, query: str, limit: int = 1) -> List[dict]:
        """Search Spotify tracks, best match first."""
        results = await self._call(self.session.search, q=query, type="track", limit=limit)
        return (results or {}).get("tracks", {}).get("items", []) or []

    async def get_playlists(self) -> List[dict]:
        """Get ALL playlists of the current user (paginated)."""
        playlists = []
        results = await self._call(self.session.current_user_playlists)

        while True:
            playlists.extend(p for p in results.get("items", []) if p)

            if not results.get("next"):
                break
            results = await self._call(self.session.next, results)

        logger.debug(f"Fetched {len(playlists)} Spotify playlists")
        return playlists

    async def get_playlist_track_uris(self, playlist_id: str) -> List[str]:
        """Get the URIs of every item in a playlist, in playlist order."""
        uris = []
        results = await self._call(
            self.session.playlist_items, playlist_id, fields="items(track(uri)),next"
        )

        while True:
            for item in results.get("items", []):
                track = item.get("track") if item else None
                if track and track.get("uri"):
                    uris.append(track["uri"])

            if not results.get("next"):
                break
            results = await self._call(self.session.next, results)

        return uris

    # =========================================================================
    # Writing
    # =========================================================================

    async def create_playlist(self, name: str, description: str = "") -> dict:
        """Create a private playlist owned by the current user."""
        user_id = await self.current_user_id()
        return await self._call(
            self.session.user_playlist_create,
            user=user_id,
            name=name,
            public=False,
            description=description,
        )

    async def change_playlist_description(self, playlist_id: str, description: str):
        await self._call(
            self.session.playlist_change_details, playlist_id, description=description
        )

    async def remove_tracks(self, playlist_id: str, uris: List[str]):
        """Remove every occurrence of the given URIs, 100 per request."""
        for chunk in _chunks(uris):
            await self._call(
                self.session.playlist_remove_all_occurrences_of_items, playlist_id, chunk
            )

    async def add_tracks(self, playlist_id: str, uris: List[str]):
        """Append URIs to a playlist in order, 100 per request."""
        for chunk in _chunks(uris):
            await self._call(self.session.playlist_add_items, playlist_id, chunk)
