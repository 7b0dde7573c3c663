"""Create-or-replace sync of generated playlists on Spotify.

Generated playlists are owned by this tool: whatever the playlist held before
is replaced by the new track list on every run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .models import PlaylistDetails
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of syncing one playlist."""

    playlist_id: str
    created: bool
    removed: int
    added: int


class PlaylistSynchronizer:
    """Finds or creates a playlist by name and replaces its contents."""

    def __init__(self, client: SpotifyClient):
        self.client = client

    async def sync(
        self, details: PlaylistDetails, track_uris: Sequence[str]
    ) -> SyncResult:
        """
        Write `track_uris` to the playlist named `details.name`, in order.

        Each Spotify call is retried on its own; the whole sequence is not.
        If adding fails after the old tracks were removed, the playlist is
        left empty until the next successful run.
        """
        playlist = await self._find_playlist(details.name)
        removed = 0

        if playlist:
            playlist_id = playlist["id"]
            created = False
            logger.info(f"Updating playlist '{details.name}'")
            await self.client.change_playlist_description(playlist_id, details.description)

            if (playlist.get("tracks") or {}).get("total", 0) > 0:
                existing = await self.client.get_playlist_track_uris(playlist_id)
                if existing:
                    await self.client.remove_tracks(playlist_id, existing)
                    removed = len(existing)
                    logger.info(f"Removed {removed} old tracks from '{details.name}'")
        else:
            logger.info(f"Creating playlist '{details.name}'")
            created_playlist = await self.client.create_playlist(
                details.name, details.description
            )
            playlist_id = created_playlist["id"]
            created = True

        tracks: List[str] = list(track_uris)
        if not tracks:
            logger.warning(f"No tracks to add to '{details.name}'")
            return SyncResult(playlist_id, created, removed, 0)

        await self.client.add_tracks(playlist_id, tracks)
        logger.info(f"Added {len(tracks)} tracks to '{details.name}'")
        return SyncResult(playlist_id, created, removed, len(tracks))

    async def _find_playlist(self, name: str) -> Optional[dict]:
        """First own playlist with exactly this name; duplicates are reported."""
        user_id = await self.client.current_user_id()
        matches = [
            p
            for p in await self.client.get_playlists()
            if p.get("name") == name
            and (p.get("owner") or {}).get("id", user_id) == user_id
        ]
        if len(matches) > 1:
            ids = ", ".join(p["id"] for p in matches)
            logger.warning(
                f"Found {len(matches)} playlists named '{name}' ({ids}); "
                f"updating the first one"
            )
        return matches[0] if matches else None
