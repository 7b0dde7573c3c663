"""
Caching layer for track lookups.
Uses JSON for persistence across runs (optional), with a size ceiling
enforced by evicting the least recently accessed entries on save.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Generic, Optional, TypeVar

from .config import format_size

logger = logging.getLogger(__name__)

V = TypeVar("V")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_timestamp(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class PersistentCache(Generic[V]):
    """
    Key/value cache with last-access timestamps.
    Uses JSON file for persistence (optional), dict for runtime storage.

    For CLI: Pass cache_file to persist between runs.
    For tests or one-off runs: Use without cache_file for in-memory only.

    Entries are stored as {"value": ..., "timestamp": <epoch ms>}. Reading an
    entry refreshes its timestamp, so pruning drops the entries that have gone
    unused the longest.
    """

    def __init__(self, cache_file: Optional[str] = None, max_size_bytes: int = 0):
        self._cache_file = Path(cache_file) if cache_file else None
        self._max_size_bytes = max(0, int(max_size_bytes or 0))
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._dirty = False

        self.load()

    @property
    def dirty(self) -> bool:
        return self._dirty

    def load(self):
        """Load cache state from JSON file. Failures leave the cache empty."""
        if not self._cache_file or not self._cache_file.exists():
            return

        logger.info(f"Loading cache from {self._cache_file}...")
        try:
            with open(self._cache_file, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("cache file does not contain a JSON object")
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning(f"Failed to load cache from {self._cache_file}: {e}")
            self._entries = {}
            return

        entries = {}
        for key, entry in data.items():
            if (
                isinstance(entry, dict)
                and "value" in entry
                and _is_timestamp(entry.get("timestamp"))
            ):
                entries[key] = {"value": entry["value"], "timestamp": entry["timestamp"]}
            else:
                logger.debug(f"Dropping malformed cache entry {key!r}")
        self._entries = entries

        logger.info(
            f"Loaded {len(self._entries)} cache entries "
            f"({format_size(self._cache_file.stat().st_size)})"
        )

    def save(self):
        """Save cache state to JSON file, pruning first if over the size limit."""
        if not self._cache_file or not self._dirty:
            return

        try:
            if self._max_size_bytes > 0:
                self._prune_if_needed()

            payload = self._serialize()
            self._cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self._cache_file, "w", encoding="utf-8") as f:
                f.write(payload)

            logger.info(
                f"Saved {len(self._entries)} cache entries to {self._cache_file} "
                f"({format_size(len(payload.encode('utf-8')))})"
            )
            self._dirty = False
        except OSError as e:
            logger.warning(f"Failed to save cache to {self._cache_file}: {e}")

    def get(self, key: str) -> Optional[V]:
        """Get a cached value and mark the entry as recently used."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        entry["timestamp"] = _now_ms()
        self._dirty = True
        return entry["value"]

    def set(self, key: str, value: V):
        """Store a value with the current timestamp."""
        self._entries[key] = {"value": value, "timestamp": _now_ms()}
        self._dirty = True

    def has(self, key: str) -> bool:
        """Check presence without touching the entry's timestamp."""
        return key in self._entries

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> dict:
        """Get cache statistics."""
        return {
            "entries": len(self._entries),
            "size_bytes": self._serialized_size(),
            "max_size_bytes": self._max_size_bytes,
            "dirty": self._dirty,
        }

    def _serialize(self) -> str:
        return json.dumps(self._entries, ensure_ascii=False, separators=(",", ":"))

    def _serialized_size(self) -> int:
        return len(self._serialize().encode("utf-8"))

    def _prune_if_needed(self):
        current_size = self._serialized_size()
        if current_size <= self._max_size_bytes:
            return

        logger.warning(
            f"Cache size ({format_size(current_size)}) exceeds limit "
            f"({format_size(self._max_size_bytes)}), pruning..."
        )
        self._prune(current_size)

    def _prune(self, current_size: int):
        """Evict oldest entries one at a time until the cache fits."""
        # sorted() is stable, so equal timestamps keep insertion order
        oldest_first = sorted(self._entries, key=lambda k: self._entries[k]["timestamp"])

        removed = 0
        last_size = current_size
        for key in oldest_first:
            del self._entries[key]
            removed += 1

            new_size = self._serialized_size()
            logger.debug(
                f'Removed entry with key "{key}", saved {format_size(last_size - new_size)}'
            )
            last_size = new_size

            if new_size <= self._max_size_bytes:
                logger.info(
                    f"Pruned {removed} oldest entries, new size: {format_size(new_size)}"
                )
                return

        logger.warning(
            f"Removed all {removed} entries, but cache size "
            f"({format_size(last_size)}) still exceeds limit "
            f"({format_size(self._max_size_bytes)})."
        )
