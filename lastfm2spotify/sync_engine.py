"""SyncEngine implementation.

This module wires the station fetcher, Spotify client, resolver and playlist
synchronizer together and runs the per-user and blended playlist jobs.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

import spotipy
from tqdm import tqdm

from .blend import blend
from .cache import PersistentCache
from .fetchers import StationFetcher
from .models import PlaylistDetails, ResolvedTrack, StationType
from .rate_limiter import RateLimiter
from .resolver import TrackResolver
from .retry_utils import RetryOptions
from .searcher import SpotifySearcher
from .spotify_client import SpotifyClient
from .sync_playlists import PlaylistSynchronizer, SyncResult

if TYPE_CHECKING:
    from .logging_utils import SyncLogger

logger = logging.getLogger(__name__)


class SyncEngine:
    """Generates Spotify playlists from Last.fm stations."""

    def __init__(
        self,
        spotify: spotipy.Spotify,
        cache: Optional[PersistentCache[ResolvedTrack]] = None,
        fetcher: Optional[StationFetcher] = None,
        rate_limit: float = 10,
        logger: Optional["SyncLogger"] = None,
        progress_callback: Optional[Callable[..., None]] = None,
        show_progress: bool = True,
        retry_options: Optional[RetryOptions] = None,
    ):
        self.cache = cache if cache is not None else PersistentCache()
        self.client = SpotifyClient(spotify, RateLimiter(rate_limit), retry_options)
        self.fetcher = fetcher or StationFetcher(retry_options=retry_options)
        self.searcher = SpotifySearcher(self.client)
        self.resolver = TrackResolver(
            self.fetcher, self.searcher, progress_callback=self._on_item
        )
        self.synchronizer = PlaylistSynchronizer(self.client)

        self._logger = logger
        self._progress_callback = progress_callback
        self._show_progress = show_progress
        self._bar: Optional[tqdm] = None

    def _log(self, level: str, message: str):
        if self._logger:
            getattr(self._logger, level)(message)
        else:
            logger.info(message)

    def _report_progress(self, **kwargs):
        if self._progress_callback:
            self._progress_callback(**kwargs)

    def _on_item(self, **kwargs):
        if self._bar is not None and kwargs.get("matched"):
            self._bar.update(1)
        self._report_progress(**kwargs)

    async def _resolve(self, username: str, station: StationType, amount: int) -> List[str]:
        self._report_progress(event="phase", phase="resolving", username=username)
        with tqdm(
            total=amount,
            desc=f"{username}'s {station}"[:30],
            disable=not self._show_progress,
            leave=False,
        ) as bar:
            self._bar = bar
            try:
                return await self.resolver.resolve(username, station, amount, self.cache)
            finally:
                self._bar = None

    async def create_separate_playlist(
        self, username: str, station: StationType, amount: int
    ) -> SyncResult:
        """Resolve one user's station and write it to "<user>'s <station>"."""
        details = PlaylistDetails.for_user(username, station, datetime.now())
        self._log("progress", f"Generating {details.name}...")

        uris = await self._resolve(username, station, amount)

        self._report_progress(event="phase", phase="syncing")
        return await self.synchronizer.sync(details, uris)

    async def create_blended_playlist(
        self, usernames: Iterable[str], station: StationType, amount: int
    ) -> SyncResult:
        """Resolve every user's station and write the round-robin blend."""
        users = list(dict.fromkeys(usernames))
        details = PlaylistDetails.for_blend(users, station, datetime.now())
        self._log("progress", f"Generating {details.name}...")

        per_user: Dict[str, List[str]] = {}
        for username in users:
            per_user[username] = await self._resolve(username, station, amount)

        uris = blend(per_user, amount)
        logger.info(f"Blended {len(uris)} tracks from {len(users)} users")

        self._report_progress(event="phase", phase="syncing")
        return await self.synchronizer.sync(details, uris)

    async def run(
        self,
        usernames: List[str],
        stations: List[StationType],
        amount: int,
        enable_separate: bool = True,
        enable_blend: bool = False,
    ) -> dict:
        """
        Run every enabled job, one at a time.

        A failed job is logged and recorded; the remaining jobs still run.
        The cache is saved after each job.

        Returns: playlist name -> {"added", "removed", "created"} or {"error"}
        """
        jobs = []
        if enable_separate:
            for username in usernames:
                for station in stations:
                    jobs.append(
                        (
                            PlaylistDetails.for_user(username, station).name,
                            partial(self.create_separate_playlist, username, station, amount),
                        )
                    )
        if enable_blend:
            for station in stations:
                jobs.append(
                    (
                        PlaylistDetails.for_blend(usernames, station).name,
                        partial(self.create_blended_playlist, usernames, station, amount),
                    )
                )

        results: dict = {}
        for name, job in jobs:
            try:
                result = await job()
                results[name] = {
                    "added": result.added,
                    "removed": result.removed,
                    "created": result.created,
                }
                self._log("success", f"{name}: {result.added} tracks")
            except Exception as e:
                logger.debug("Job failed", exc_info=True)
                self._log("error", f"{name} failed: {e}")
                results[name] = {"error": str(e)}
            finally:
                self.cache.save()

        self.cache.save()
        return results
