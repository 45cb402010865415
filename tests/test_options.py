# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest

from globeview.options import OptionBag, is_not_false, is_truthy, parse_query, to_query


def test_parse_query_decodes_pairs() -> None:
    bag = parse_query("?source=http%3A%2F%2Fexample.com%2Fa.czml&view=30,10&theme=a+b")
    assert bag == {
        "source": "http://example.com/a.czml",
        "view": "30,10",
        "theme": "a b",
    }
    assert isinstance(bag, OptionBag)


def test_parse_query_segment_without_value_is_empty_string() -> None:
    assert parse_query("stats&flyTo=false") == {"stats": "", "flyTo": "false"}


def test_parse_query_empty_and_stray_separators() -> None:
    assert parse_query("") == {}
    assert parse_query("?") == {}
    assert parse_query("a=1&&b=2&") == {"a": "1", "b": "2"}


def test_parse_query_collects_repeated_keys() -> None:
    bag = parse_query("source=a.czml&source=b.kml&source=c.gpx")
    assert bag["source"] == ["a.czml", "b.kml", "c.gpx"]
    assert bag.get_str("source") == "c.gpx"


def test_false_strings_stay_strings() -> None:
    bag = parse_query("flyTo=false&stats=false&saveCamera=true")
    assert bag["flyTo"] == "false"
    assert bag["saveCamera"] == "true"
    # "false" is still a present, non-empty value
    assert is_truthy(bag["stats"])
    assert not is_not_false(bag["flyTo"])


@pytest.mark.parametrize(
    "value, truthy, not_false",
    [
        (None, False, True),
        ("", False, True),
        ("false", True, False),
        ("False", True, True),
        ("0", True, True),
        ("true", True, True),
    ],
)
def test_truthiness_conventions(value, truthy, not_false) -> None:
    assert is_truthy(value) is truthy
    assert is_not_false(value) is not_false


def test_to_query_encodes_like_uri_components() -> None:
    query = to_query({"view": "30.5,10 20", "source": "a/b?c=d&e", "x": "!~*'()-_."})
    assert query == "view=30.5%2C10%2020&source=a%2Fb%3Fc%3Dd%26e&x=!~*'()-_."


def test_to_query_repeats_list_values() -> None:
    assert to_query({"k": ["1", "2"], "z": ""}) == "k=1&k=2&z="


@pytest.mark.parametrize(
    "bag",
    [
        {},
        {"view": "30,10,1000,90,-45,0"},
        {"source": "https://host/data set.geojson?token=a+b", "lookAt": "id with \"quotes\""},
        {"flyTo": "false", "stats": "", "theme": "lighter"},
        {"k": ["a", "b"], "unicode": "Zürich → 東京"},
        {"plus+key": "1+1=2", "pct%": "100%"},
    ],
)
def test_round_trip(bag) -> None:
    assert parse_query(to_query(bag)) == bag
    assert parse_query("?" + OptionBag(bag).to_query()) == bag
