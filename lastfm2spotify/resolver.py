"""
Resolve Last.fm station tracks to Spotify track URIs.

Pages through a user's station, deduplicates tracks by title and artists,
and looks each one up on Spotify once. Lookups (hits and misses) go into the
shared PersistentCache so later runs don't search for them again.
"""

import logging
from typing import Callable, Dict, List, Optional, Set

from .cache import PersistentCache
from .fetchers import StationFetcher
from .models import ResolvedTrack, StationType, TrackCandidate
from .searcher import SpotifySearcher

logger = logging.getLogger(__name__)

# Upper bound on station pages read per resolve call
DEFAULT_MAX_PAGES = 100


class TrackResolver:
    """Turns a user's station into an ordered list of Spotify track URIs."""

    def __init__(
        self,
        fetcher: StationFetcher,
        searcher: SpotifySearcher,
        progress_callback: Optional[Callable[..., None]] = None,
        max_pages: Optional[int] = DEFAULT_MAX_PAGES,
    ):
        self.fetcher = fetcher
        self.searcher = searcher
        self.progress_callback = progress_callback
        self.max_pages = max_pages

    def _report_progress(self, **kwargs):
        if self.progress_callback:
            self.progress_callback(**kwargs)

    async def resolve(
        self,
        username: str,
        station: StationType,
        target_count: Optional[int],
        cache: PersistentCache[ResolvedTrack],
    ) -> List[str]:
        """
        Resolve up to `target_count` distinct station tracks.

        `target_count=None` reads the station until it runs out of pages.
        Search failures that survive retries propagate to the caller.

        Returns: Spotify URIs in resolution order, without duplicates
        """
        if target_count is not None and target_count <= 0:
            return []

        # TrackKey -> URI, insertion order is output order
        found: Dict[str, str] = {}
        found_uris: Set[str] = set()
        not_found: Set[str] = set()
        width = len(str(target_count)) if target_count else 0

        def done() -> bool:
            return target_count is not None and len(found) >= target_count

        page = 1
        while not done():
            if self.max_pages is not None and page > self.max_pages:
                logger.warning(
                    f"Stopped after {self.max_pages} pages of {username}'s {station} "
                    f"station with {len(found)} tracks"
                )
                break

            candidates = await self.fetcher.get_page(username, station, page)
            if not candidates:
                logger.debug(f"{username}'s {station} station ended at page {page}")
                break

            seen_urls: Set[str] = set()
            for candidate in candidates:
                if done():
                    break

                if candidate.source_url:
                    if candidate.source_url in seen_urls:
                        continue
                    seen_urls.add(candidate.source_url)

                key = candidate.key
                if key in not_found or key in found:
                    continue

                uri, from_cache = await self._lookup(candidate, cache)

                if uri and uri not in found_uris:
                    found[key] = uri
                    found_uris.add(uri)
                    status = "cached" if from_cache else "found"
                    logger.info(f"{str(len(found)).rjust(width)} [{status}] {key}")
                    self._report_progress(event="item", matched=True, from_cache=from_cache)
                elif uri:
                    # Different TrackKey, same Spotify track
                    not_found.add(key)
                    logger.debug(f"{' ' * width} [duplicate] {key}")
                else:
                    not_found.add(key)
                    status = "cached, not found" if from_cache else "not found"
                    logger.info(f"{' ' * width} [{status}] {key}")
                    self._report_progress(event="item", matched=False, from_cache=from_cache)

            page += 1

        uris = list(found.values())
        if target_count is not None:
            uris = uris[:target_count]

        logger.info(
            f"Resolved {len(uris)} tracks from {username}'s {station} station "
            f"({len(not_found)} not found)"
        )
        return uris

    async def _lookup(
        self, candidate: TrackCandidate, cache: PersistentCache[ResolvedTrack]
    ):
        """Return (uri or None, from_cache), searching and caching on a miss."""
        key = candidate.key
        if cache.has(key):
            return cache.get(key), True

        uri = await self.searcher.search_track(candidate)
        cache.set(key, uri)
        return uri, False
