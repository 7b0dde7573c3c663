"""Fetcher for Last.fm station pages."""

import logging
from typing import List, Optional

import requests

from ..models import StationType, TrackCandidate
from ..retry_utils import RemoteCallError, RetryOptions, retry_async_call

logger = logging.getLogger(__name__)

STATION_URL = "https://www.last.fm/player/station/user/{username}/{station}"

# Status codes worth retrying; any other non-2xx answer ends the feed
RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class StationFetcher:
    """
    Fetches one page at a time from a user's Last.fm station.

    An empty list means there is nothing more to read: the feed is exhausted,
    answered with an error status, or returned something that isn't a station
    page. Network failures are retried before giving up the same way.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        retry_options: Optional[RetryOptions] = None,
        timeout: float = 30,
    ):
        """
        Initialize the station fetcher.

        Args:
            session: requests session to reuse (a new one is created if omitted)
            retry_options: Retry strategy for transient failures
            timeout: Per-request timeout in seconds
        """
        self.session = session or requests.Session()
        self.retry_options = retry_options
        self.timeout = timeout

    def _get(self, url: str, page: int) -> requests.Response:
        response = self.session.get(url, params={"page": page}, timeout=self.timeout)
        if response.status_code in RETRYABLE_STATUSES:
            retry_after = response.headers.get("Retry-After")
            raise RemoteCallError(
                f"Last.fm returned {response.status_code}",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
                status=response.status_code,
            )
        return response

    async def get_page(
        self, username: str, station: StationType, page: int = 1
    ) -> List[TrackCandidate]:
        """Get the tracks on one station page (pages start at 1)."""
        url = STATION_URL.format(username=username, station=station)

        try:
            response = await retry_async_call(
                self._get, url, page, options=self.retry_options
            )
        except (requests.RequestException, RemoteCallError) as e:
            logger.warning(f"Could not fetch {station} station page {page} for {username}: {e}")
            return []

        if not response.ok:
            logger.warning(
                f"Last.fm returned {response.status_code} for {username}'s "
                f"{station} station page {page}"
            )
            return []

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Malformed station page {page} for {username}: {e}")
            return []

        items = data.get("playlist") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.warning(f"Station page {page} for {username} has no playlist")
            return []

        candidates = []
        for item in items:
            try:
                candidates.append(TrackCandidate.from_lastfm(item))
            except (ValueError, AttributeError, TypeError) as e:
                logger.debug(f"Skipping station item: {e}")
        return candidates
