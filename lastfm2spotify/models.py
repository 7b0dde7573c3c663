"""
Data models for station tracks and generated playlists.

Uses dataclasses for clean, minimal definitions with
platform-specific factory methods.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

# A Spotify track URI, or None when the track is known not to exist there
ResolvedTrack = Optional[str]


class StationType(str, Enum):
    """Last.fm station modes."""

    LIBRARY = "library"
    MIX = "mix"
    RECOMMENDED = "recommended"

    def __str__(self) -> str:
        return self.value


@dataclass
class TrackCandidate:
    """A track as listed on a Last.fm station page."""

    title: str
    artists: List[str] = field(default_factory=list)
    source_url: str = ""

    @property
    def key(self) -> str:
        """Identity used for search caching: "<title> - <artist1>, <artist2>"."""
        return f"{self.title} - {', '.join(self.artists)}"

    @classmethod
    def from_lastfm(cls, item: dict) -> "TrackCandidate":
        """Create from a Last.fm station playlist item."""
        title = item.get("name")
        if not isinstance(title, str) or not title:
            raise ValueError(f"Station item has no track name: {item!r}")

        artists = [
            a["name"]
            for a in item.get("artists") or []
            if isinstance(a, dict) and isinstance(a.get("name"), str) and a["name"]
        ]
        url = item.get("url")
        return cls(
            title=title, artists=artists, source_url=url if isinstance(url, str) else ""
        )


def format_timestamp(now: datetime) -> str:
    """Short date and time, e.g. "3/7/25, 9:05 PM"."""
    hour = now.hour % 12 or 12
    suffix = "AM" if now.hour < 12 else "PM"
    return f"{now.month}/{now.day}/{now:%y}, {hour}:{now:%M} {suffix}"


def _join_names(names: List[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return f"{', '.join(names[:-1])} and {names[-1]}"


@dataclass(frozen=True)
class PlaylistDetails:
    """Name and description of a generated Spotify playlist."""

    name: str
    description: str

    @classmethod
    def for_user(
        cls, username: str, station: StationType, now: Optional[datetime] = None
    ) -> "PlaylistDetails":
        """Details for a single user's station playlist."""
        stamp = format_timestamp(now or datetime.now())
        return cls(
            name=f"{username}'s {station}",
            description=(
                f"A playlist generated from {username}'s {station} station "
                f"on Last.fm on {stamp}"
            ),
        )

    @classmethod
    def for_blend(
        cls,
        usernames: Iterable[str],
        station: StationType,
        now: Optional[datetime] = None,
    ) -> "PlaylistDetails":
        """Details for a blended playlist; usernames are sorted and deduplicated."""
        names = _join_names(sorted(set(usernames)))
        stamp = format_timestamp(now or datetime.now())
        return cls(
            name=f"{names}'s {station} blend",
            description=(
                f"A blended playlist generated from {names}'s {station} stations "
                f"on Last.fm on {stamp}"
            ),
        )
