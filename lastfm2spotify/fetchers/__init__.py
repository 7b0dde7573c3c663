"""Page fetchers for Last.fm station feeds."""

from .station_fetcher import StationFetcher

__all__ = ["StationFetcher"]
