"""
Configuration loading for lastfm2spotify.

Settings come from an optional YAML file and can be overridden by environment
variables, so the tool runs the same from a config.yml or from a container
environment.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .models import StationType

DEFAULT_AMOUNT = 30

SIZE_UNITS = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


class ConfigError(ValueError):
    """Raised when the configuration is missing or invalid."""


def parse_size(size) -> int:
    """
    Parse a size string to bytes.

    Args:
        size: Size like "10MB", "1.5 GB", "500kb" or a plain number of bytes
    """
    if isinstance(size, (int, float)):
        return int(size)

    size_str = str(size).upper().strip()
    if not size_str:
        return 0

    match = re.match(r"^(\d+(?:\.\d+)?)\s*([KMGT]?B)?$", size_str)
    if not match:
        raise ConfigError(f"Invalid size format: {size}")

    number, unit = match.groups()
    return int(float(number) * SIZE_UNITS[unit or "B"])


def format_size(size_bytes: int) -> str:
    """Format a byte count as a human-readable string ("1.5 MB")."""
    value = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if abs(value) < 1024:
            break
        value /= 1024
    else:
        unit = "TB"

    if unit == "B" or value == int(value):
        return f"{int(value)} {unit}"
    return f"{value:.2f}".rstrip("0").rstrip(".") + f" {unit}"


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _split_list(value) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v).strip() for v in value if str(v).strip()]


@dataclass
class Config:
    """Validated runtime configuration."""

    usernames: List[str]
    stations: List[StationType] = field(default_factory=lambda: list(StationType))
    amount: int = DEFAULT_AMOUNT
    enable_separate: bool = True
    enable_blend: bool = False
    cache_file: Optional[str] = "cache.json"
    cache_max_size: int = 0
    rate_limit: float = 10
    spotify: dict = field(default_factory=dict)


def load_config_file(config_path: str) -> dict:
    """Load configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def build_config(raw: dict, environ: Optional[dict] = None) -> Config:
    """
    Merge file settings with environment overrides and validate them.

    Raises:
        ConfigError: On missing usernames, unknown station types, a bad
            amount or an unparsable cache size
    """
    env = os.environ if environ is None else environ
    cache_section = raw.get("cache") or {}
    spotify_section = dict(raw.get("spotify") or {})

    usernames = _split_list(env.get("LASTFM_USERNAMES") or raw.get("usernames"))
    if not usernames:
        raise ConfigError("No Last.fm usernames specified.")

    station_names = _split_list(env.get("LASTFM_PLAYLISTS") or raw.get("playlists"))
    try:
        stations = (
            [StationType(name.lower()) for name in station_names]
            if station_names
            else list(StationType)
        )
    except ValueError as e:
        valid = ", ".join(s.value for s in StationType)
        raise ConfigError(f"Unknown Last.fm playlist type ({e}). Use one of: {valid}")

    raw_amount = env.get("AMOUNT", raw.get("amount", DEFAULT_AMOUNT))
    try:
        amount = int(raw_amount)
    except (TypeError, ValueError):
        raise ConfigError(f"Amount is not a number: {raw_amount!r}")
    if amount <= 0:
        raise ConfigError(f"Amount must be positive, got {amount}")

    raw_rate = raw.get("rate_limit", 10)
    try:
        rate_limit = float(raw_rate)
    except (TypeError, ValueError):
        raise ConfigError(f"Rate limit is not a number: {raw_rate!r}")
    if not rate_limit >= 0:
        raise ConfigError(f"Rate limit cannot be negative, got {rate_limit}")

    enable_separate = _parse_bool(env.get("ENABLE_SEPARATE", raw.get("enable_separate", True)))
    enable_blend = _parse_bool(env.get("ENABLE_BLEND", raw.get("enable_blend", False)))

    cache_file = env.get("CACHE_FILE", cache_section.get("file", "cache.json")) or None
    cache_max_size = parse_size(env.get("CACHE_MAX_SIZE", cache_section.get("max_size", 0)) or 0)

    for key, var in (
        ("client_id", "SPOTIFY_CLIENT_ID"),
        ("client_secret", "SPOTIFY_CLIENT_SECRET"),
        ("redirect_uri", "SPOTIFY_REDIRECT_URI"),
        ("token_file", "SPOTIFY_TOKEN_FILE"),
    ):
        if env.get(var):
            spotify_section[key] = env[var]

    return Config(
        usernames=usernames,
        stations=stations,
        amount=amount,
        enable_separate=enable_separate,
        enable_blend=enable_blend,
        cache_file=cache_file,
        cache_max_size=cache_max_size,
        rate_limit=rate_limit,
        spotify=spotify_section,
    )
