"""
Spotify track search for Last.fm station tracks.
"""

import logging
from typing import Optional

from .models import TrackCandidate
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


def build_track_query(candidate: TrackCandidate) -> str:
    """Field-filtered query naming the title and every credited artist."""
    parts = [f"track:{candidate.title}"]
    parts.extend(f"artist:{artist}" for artist in candidate.artists)
    return " ".join(parts)


class SpotifySearcher:
    """Looks up Last.fm tracks on Spotify."""

    def __init__(self, client: SpotifyClient):
        self.client = client

    async def search_track(self, candidate: TrackCandidate) -> Optional[str]:
        """
        Search for a station track on Spotify.

        Returns the URI of the top result, or None if Spotify has no match.
        Remote failures are retried by the client and raised once retries run out.
        """
        items = await self.client.search_tracks(build_track_query(candidate), limit=1)
        if not items:
            return None
        return items[0].get("uri")
