from staydata.mappers.json_probe import (
    dig,
    find_first,
    first_int,
    leading_int,
    parse_price,
    probe_float,
    probe_id,
    probe_int,
    probe_str,
    strip_html,
)


DATA = {
    "listing": {
        "id": 123,
        "name": "Loft",
        "pictures": [{"url": "a.jpg"}, {"url": "b.jpg"}],
        "rating": "4.9",
        "count": -3,
    }
}


def test_dig_walks_dicts_and_list_indices():
    assert dig(DATA, "listing.pictures.1.url") == "b.jpg"


def test_dig_returns_none_on_miss():
    assert dig(DATA, "listing.pictures.5.url") is None
    assert dig(DATA, "listing.name.first") is None
    assert dig(None, "anything") is None


def test_probe_skips_candidates_with_wrong_type():
    # "rating" exists but is a string, so the float probe moves on.
    assert probe_float(DATA, "listing.rating", "listing.id") == 123.0


def test_probe_str_first_match_wins():
    assert probe_str(DATA, "listing.title", "listing.name") == "Loft"


def test_probe_int_rejects_negative_and_bool():
    assert probe_int(DATA, "listing.count") is None
    assert probe_int({"flag": True}, "flag") is None
    assert probe_int({"n": 4.0}, "n") == 4


def test_probe_id_accepts_int_or_str():
    assert probe_id(DATA, "listing.id") == "123"
    assert probe_id({"id": "abc"}, "id") == "abc"


def test_parse_price_variants():
    assert parse_price("$120") == 120.0
    assert parse_price("€95.50") == 95.5
    assert parse_price("1,200 USD") == 1200.0
    assert parse_price("Free") is None
    assert parse_price(None) is None


def test_first_int_and_leading_int():
    assert first_int("3 bedrooms") == 3
    assert first_int("Studio") is None
    assert leading_int("Check-in after 3PM") == 3


def test_strip_html_keeps_line_breaks():
    assert strip_html("<b>Cozy</b> loft<br>Near the park") == "Cozy loft\nNear the park"


def test_find_first_is_depth_bounded():
    deep = {"a": {"b": {"c": {"target": True}}}}
    assert find_first(deep, lambda n: isinstance(n, dict) and "target" in n) == {"target": True}
    assert find_first(deep, lambda n: isinstance(n, dict) and "target" in n, max_depth=2) is None
