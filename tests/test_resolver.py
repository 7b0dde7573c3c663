import asyncio

import pytest

from lastfm2spotify.cache import PersistentCache
from lastfm2spotify.models import StationType, TrackCandidate
from lastfm2spotify.resolver import TrackResolver


def _track(n, url=None, artists=None) -> TrackCandidate:
    return TrackCandidate(f"Song {n}", artists or [f"Artist {n}"], url or f"url-{n}")


class _Fetcher:
    def __init__(self, pages):
        self.pages = pages
        self.calls = []

    async def get_page(self, username, station, page=1):
        self.calls.append((username, station, page))
        if page - 1 < len(self.pages):
            return list(self.pages[page - 1])
        return []


class _Searcher:
    """Finds every track except those listed in `missing`."""

    def __init__(self, missing=(), uris=None):
        self.missing = set(missing)
        self.uris = uris or {}
        self.queries = []

    async def search_track(self, candidate):
        self.queries.append(candidate.key)
        if candidate.key in self.missing:
            return None
        return self.uris.get(candidate.key, f"spotify:track:{candidate.title}")


def _resolve(resolver, target, cache, username="alice", station=StationType.LIBRARY):
    return asyncio.run(resolver.resolve(username, station, target, cache))


def test_two_pages_with_duplicate_across_pages_reaches_target():
    page1 = [_track(i) for i in range(1, 7)]
    page2 = [_track(3, url="other-url")] + [_track(i) for i in range(7, 12)]
    fetcher = _Fetcher([page1, page2])
    searcher = _Searcher()
    resolver = TrackResolver(fetcher, searcher)

    result = _resolve(resolver, 10, PersistentCache())

    assert result == [f"spotify:track:Song {i}" for i in range(1, 11)]
    assert len(searcher.queries) == 10
    assert searcher.queries.count("Song 3 - Artist 3") == 1
    assert [c[2] for c in fetcher.calls] == [1, 2]


def test_returns_all_distinct_matches_when_feed_runs_out():
    page1 = [_track(i) for i in range(1, 7)]
    page2 = [_track(3, url="again")] + [_track(i) for i in range(7, 12)]
    fetcher = _Fetcher([page1, page2])
    searcher = _Searcher(missing={"Song 2 - Artist 2", "Song 8 - Artist 8"})
    resolver = TrackResolver(fetcher, searcher)

    result = _resolve(resolver, 10, PersistentCache())

    assert len(result) == 9
    assert "spotify:track:Song 2" not in result
    assert len(result) == len(set(result))
    assert [c[2] for c in fetcher.calls] == [1, 2, 3]


def test_dedups_by_track_key_not_url():
    page = [
        TrackCandidate("Song", ["A", "B"], "url-1"),
        TrackCandidate("Song", ["A", "B"], "url-2"),
        TrackCandidate("Song", ["B", "A"], "url-3"),
    ]
    searcher = _Searcher()
    resolver = TrackResolver(_Fetcher([page]), searcher)

    result = _resolve(resolver, 5, PersistentCache())

    assert searcher.queries == ["Song - A, B", "Song - B, A"]
    # Both keys map to the same Spotify track, which is only listed once
    assert result == ["spotify:track:Song"]


def test_repeated_url_on_a_page_is_looked_up_once():
    page = [_track(1), _track(1), _track(2)]
    searcher = _Searcher()
    resolver = TrackResolver(_Fetcher([page]), searcher)

    _resolve(resolver, 5, PersistentCache())
    assert searcher.queries == ["Song 1 - Artist 1", "Song 2 - Artist 2"]


def test_not_found_key_is_not_searched_again_in_same_pass():
    missing = _track(1)
    pages = [[missing, _track(2)], [_track(1, url="u-again"), _track(3)]]
    searcher = _Searcher(missing={missing.key})
    resolver = TrackResolver(_Fetcher(pages), searcher)

    result = _resolve(resolver, 10, PersistentCache())

    assert searcher.queries.count(missing.key) == 1
    assert result == ["spotify:track:Song 2", "spotify:track:Song 3"]


def test_warm_cache_makes_no_remote_calls_and_same_output():
    pages = [[_track(i) for i in range(1, 6)], [_track(i) for i in range(6, 9)]]
    cache = PersistentCache()

    first_searcher = _Searcher(missing={"Song 4 - Artist 4"})
    first = _resolve(TrackResolver(_Fetcher(pages), first_searcher), 6, cache)

    second_searcher = _Searcher()
    second = _resolve(TrackResolver(_Fetcher(pages), second_searcher), 6, cache)

    assert second_searcher.queries == []
    assert second == first
    assert "spotify:track:Song 4" not in second


def test_negative_cache_entry_from_previous_run_skips_search(tmp_path):
    path = str(tmp_path / "cache.json")
    cache = PersistentCache(path)
    cache.set("Song 1 - Artist 1", None)
    cache.save()

    searcher = _Searcher()
    result = _resolve(
        TrackResolver(_Fetcher([[_track(1), _track(2)]]), searcher), 5, PersistentCache(path)
    )

    assert searcher.queries == ["Song 2 - Artist 2"]
    assert result == ["spotify:track:Song 2"]


def test_search_outcomes_are_written_to_cache():
    cache = PersistentCache()
    searcher = _Searcher(missing={"Song 2 - Artist 2"})

    _resolve(TrackResolver(_Fetcher([[_track(1), _track(2)]]), searcher), 5, cache)

    assert cache.get("Song 1 - Artist 1") == "spotify:track:Song 1"
    assert cache.has("Song 2 - Artist 2")
    assert cache.get("Song 2 - Artist 2") is None


def test_stops_fetching_once_target_reached():
    pages = [[_track(i) for i in range(1, 6)], [_track(i) for i in range(6, 11)]]
    fetcher = _Fetcher(pages)
    searcher = _Searcher()

    result = _resolve(TrackResolver(fetcher, searcher), 3, PersistentCache())

    assert len(result) == 3
    assert len(searcher.queries) == 3
    assert len(fetcher.calls) == 1


def test_unbounded_target_reads_until_feed_exhausted():
    pages = [[_track(1), _track(2)], [_track(3)], [_track(4)]]
    fetcher = _Fetcher(pages)

    result = _resolve(TrackResolver(fetcher, _Searcher()), None, PersistentCache())

    assert len(result) == 4
    assert [c[2] for c in fetcher.calls] == [1, 2, 3, 4]


def test_non_positive_target_fetches_nothing():
    fetcher = _Fetcher([[_track(1)]])
    assert _resolve(TrackResolver(fetcher, _Searcher()), 0, PersistentCache()) == []
    assert fetcher.calls == []


def test_max_pages_bounds_a_feed_that_never_ends():
    class _EndlessFetcher(_Fetcher):
        async def get_page(self, username, station, page=1):
            self.calls.append(page)
            return [_track(1)]

    fetcher = _EndlessFetcher([])
    resolver = TrackResolver(fetcher, _Searcher(missing={"Song 1 - Artist 1"}), max_pages=4)

    assert _resolve(resolver, 10, PersistentCache()) == []
    assert fetcher.calls == [1, 2, 3, 4]


def test_progress_callback_reports_cache_hits():
    cache = PersistentCache()
    cache.set("Song 1 - Artist 1", "spotify:track:cached")
    events = []

    resolver = TrackResolver(
        _Fetcher([[_track(1), _track(2), _track(3)]]),
        _Searcher(missing={"Song 3 - Artist 3"}),
        progress_callback=lambda **kw: events.append(kw),
    )
    result = _resolve(resolver, 5, cache)

    assert result == ["spotify:track:cached", "spotify:track:Song 2"]
    assert events == [
        {"event": "item", "matched": True, "from_cache": True},
        {"event": "item", "matched": True, "from_cache": False},
        {"event": "item", "matched": False, "from_cache": False},
    ]


def test_search_failure_propagates():
    class _BrokenSearcher:
        async def search_track(self, candidate):
            raise ConnectionError("spotify down")

    resolver = TrackResolver(_Fetcher([[_track(1)]]), _BrokenSearcher())
    with pytest.raises(ConnectionError):
        _resolve(resolver, 5, PersistentCache())


def test_passes_user_and_station_to_fetcher():
    fetcher = _Fetcher([])
    _resolve(TrackResolver(fetcher, _Searcher()), 5, PersistentCache(), "bob", StationType.MIX)
    assert fetcher.calls == [("bob", StationType.MIX, 1)]
