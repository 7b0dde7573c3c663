from lastfm2spotify.blend import blend


def test_round_robin_with_uneven_lists():
    result = blend(
        {
            "alice": ["a1", "a2", "a3"],
            "bob": ["b1"],
            "carol": ["c1", "c2"],
        }
    )
    assert result == ["a1", "b1", "c1", "a2", "c2", "a3"]
    assert [i for i, uri in enumerate(result) if uri.startswith("a")] == [0, 3, 5]


def test_stops_at_target_count():
    result = blend({"alice": ["a1", "a2", "a3"], "bob": ["b1", "b2", "b3"]}, 3)
    assert result == ["a1", "b1", "a2"]


def test_target_larger_than_available():
    assert blend({"alice": ["a1"], "bob": ["b1", "b2"]}, 10) == ["a1", "b1", "b2"]


def test_follows_mapping_order():
    assert blend({"bob": ["b1"], "alice": ["a1"]}) == ["b1", "a1"]


def test_empty_inputs():
    assert blend({}) == []
    assert blend({"alice": [], "bob": []}, 5) == []


def test_non_positive_target():
    assert blend({"alice": ["a1"]}, 0) == []


def test_shared_tracks_are_kept():
    assert blend({"alice": ["x"], "bob": ["x"]}) == ["x", "x"]
