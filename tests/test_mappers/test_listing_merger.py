from staydata.mappers.listing_merger import merge_detail, needs_merge
from staydata.schemas.listing import ListingDetail


def _complete(**overrides):
    fields = {
        "id": "1",
        "name": "Loft",
        "location": "Lisbon",
        "description": "Bright",
        "price_per_night": 100.0,
        "rating": 4.8,
        "amenities": ["Wifi"],
        "photos": ["a.jpg"],
        "house_rules": ["No smoking"],
    }
    fields.update(overrides)
    return ListingDetail(**fields)


def test_complete_detail_needs_no_merge():
    assert needs_merge(_complete()) is False


def test_each_critical_gap_triggers_merge():
    assert needs_merge(_complete(name=""))
    assert needs_merge(_complete(location=""))
    assert needs_merge(_complete(amenities=[]))
    assert needs_merge(_complete(photos=[]))
    assert needs_merge(_complete(house_rules=[]))
    assert needs_merge(_complete(description=""))
    assert needs_merge(_complete(price_per_night=0.0))
    assert needs_merge(_complete(rating=None))


def test_fills_only_empty_fields():
    primary = _complete(location="", rating=None, price_per_night=0.0, currency="$")
    secondary = ListingDetail(
        id="1",
        name="Scraped Name",
        location="Scraped City",
        price_per_night=90.0,
        currency="€",
        rating=4.1,
        host_name="Rui",
    )

    merged = merge_detail(primary, secondary)

    assert merged.name == "Loft"
    assert merged.location == "Scraped City"
    assert merged.price_per_night == 90.0
    assert merged.currency == "€"
    assert merged.rating == 4.1
    assert merged.host_name == "Rui"
    assert merged.amenities == ["Wifi"]


def test_zero_secondary_price_does_not_replace():
    primary = _complete(price_per_night=0.0, currency="USD")
    secondary = ListingDetail(id="1", price_per_night=0.0, currency="€")

    merged = merge_detail(primary, secondary)

    assert merged.price_per_night == 0.0
    assert merged.currency == "USD"


def test_merge_leaves_inputs_untouched():
    primary = _complete(description="")
    secondary = ListingDetail(id="1", description="From page")

    merged = merge_detail(primary, secondary)

    assert merged.description == "From page"
    assert primary.description == ""


def test_whitespace_value_counts_as_populated():
    primary = _complete(description=" ")
    secondary = ListingDetail(id="1", description="From page")

    assert needs_merge(primary) is False
    assert merge_detail(primary, secondary).description == " "
