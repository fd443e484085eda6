from pydantic import BaseModel, ConfigDict


def plain_number(value: float) -> str:
    """Render a float without a trailing ``.0`` (120.0 -> "120", 99.5 -> "99.5")."""
    text = f"{value:f}".rstrip("0").rstrip(".")
    return text or "0"


class Listing(BaseModel):
    """Search-result summary of one stay."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    location: str = ""
    price_per_night: float = 0.0
    currency: str = "$"
    rating: float | None = None
    review_count: int = 0
    thumbnail_url: str | None = None
    property_type: str | None = None
    host_name: str | None = None
    host_id: str | None = None
    url: str = ""
    is_superhost: bool | None = None
    is_guest_favorite: bool | None = None
    instant_book: bool | None = None
    total_price: float | None = None
    photos: list[str] = []
    latitude: float | None = None
    longitude: float | None = None

    def __str__(self) -> str:
        text = (
            f"{self.name} - {self.location} "
            f"({self.currency}{plain_number(self.price_per_night)}/night"
        )
        if self.rating is not None:
            text += f", {self.rating:.1f}* {self.review_count} reviews"
        if self.is_superhost:
            text += " | Superhost"
        if self.is_guest_favorite:
            text += " | Guest Favorite"
        if self.host_id:
            text += f" | Host ID: {self.host_id}"
        if self.total_price is not None:
            text += f" | Total: {self.currency}{self.total_price:.0f}"
        return text + ")"


class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    listings: list[Listing] = []
    total_count: int | None = None
    next_cursor: str | None = None

    def __str__(self) -> str:
        if not self.listings:
            return "No listings found."
        lines = [f"{i}. {listing}" for i, listing in enumerate(self.listings, 1)]
        if self.total_count is not None:
            lines.insert(0, f"{self.total_count} listings found")
        if self.next_cursor:
            lines.append(f"\nNext page cursor: {self.next_cursor}")
        return "\n".join(lines)


class ListingDetail(BaseModel):
    """Full listing record.

    ``price_per_night == 0.0`` and ``rating is None`` mean "not extracted",
    which is what the composite client keys its merge decision on.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    location: str = ""
    description: str = ""
    price_per_night: float = 0.0
    currency: str = "$"
    rating: float | None = None
    review_count: int = 0
    property_type: str | None = None
    host_name: str | None = None
    host_id: str | None = None
    host_is_superhost: bool | None = None
    host_response_rate: str | None = None
    host_response_time: str | None = None
    host_joined: str | None = None
    host_total_listings: int | None = None
    host_languages: list[str] = []
    url: str = ""
    amenities: list[str] = []
    house_rules: list[str] = []
    photos: list[str] = []
    latitude: float | None = None
    longitude: float | None = None
    bedrooms: int | None = None
    beds: int | None = None
    bathrooms: float | None = None
    max_guests: int | None = None
    check_in_time: str | None = None
    check_out_time: str | None = None
    cancellation_policy: str | None = None
    instant_book: bool | None = None
    cleaning_fee: float | None = None
    service_fee: float | None = None
    neighborhood: str | None = None

    def __str__(self) -> str:
        lines = [
            f"# {self.name}",
            f"Location: {self.location}",
            f"Price: {self.currency}{plain_number(self.price_per_night)}/night",
        ]
        if self.rating is not None:
            lines.append(f"Rating: {self.rating:.2f} ({self.review_count} reviews)")
        if self.property_type:
            lines.append(f"Type: {self.property_type}")
        if self.host_name:
            host = f"Host: {self.host_name}"
            if self.host_is_superhost:
                host += " (Superhost)"
            if self.host_response_rate:
                host += f" | Response rate: {self.host_response_rate}"
            if self.host_response_time:
                host += f" | Response time: {self.host_response_time}"
            lines.append(host)
            if self.host_joined:
                lines.append(f"Host since: {self.host_joined}")
            if self.host_total_listings is not None:
                lines.append(f"Host listings: {self.host_total_listings}")
            if self.host_languages:
                lines.append(f"Languages: {', '.join(self.host_languages)}")
        if self.bedrooms is not None:
            rooms = f"Bedrooms: {self.bedrooms}"
            if self.beds is not None:
                rooms += f" | Beds: {self.beds}"
            if self.bathrooms is not None:
                rooms += f" | Bathrooms: {plain_number(self.bathrooms)}"
            lines.append(rooms)
        if self.max_guests is not None:
            lines.append(f"Max guests: {self.max_guests}")
        if self.cancellation_policy:
            lines.append(f"Cancellation: {self.cancellation_policy}")
        if self.neighborhood:
            lines.append(f"Neighborhood: {self.neighborhood}")
        if self.cleaning_fee is not None or self.service_fee is not None:
            fees = "Fees:"
            if self.cleaning_fee is not None:
                fees += f" Cleaning {self.currency}{self.cleaning_fee:.0f}"
            if self.service_fee is not None:
                fees += f" Service {self.currency}{self.service_fee:.0f}"
            lines.append(fees)
        if self.description:
            lines.append(f"\n## Description\n{self.description}")
        if self.amenities:
            lines.append(f"\n## Amenities\n{', '.join(self.amenities)}")
        if self.house_rules:
            lines.append(f"\n## House Rules\n{', '.join(self.house_rules)}")
        lines.append(f"\nURL: {self.url}")
        return "\n".join(lines)
