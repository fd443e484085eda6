from datetime import date, datetime

from pydantic import BaseModel

from staydata.exceptions.custom import InvalidParamsError


def _parse_day(value: str, label: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise InvalidParamsError(
            f"invalid {label} date format '{value}', expected YYYY-MM-DD"
        ) from None


class SearchParams(BaseModel):
    location: str
    checkin: str | None = None
    checkout: str | None = None
    adults: int | None = None
    children: int | None = None
    infants: int | None = None
    pets: int | None = None
    min_price: int | None = None
    max_price: int | None = None
    property_type: str | None = None
    cursor: str | None = None

    def validate_params(self) -> None:
        """Raise InvalidParamsError for inputs that must never reach the network."""
        if not self.location.strip():
            raise InvalidParamsError("location is required")

        if self.checkin is not None and self.checkout is not None:
            checkin = _parse_day(self.checkin, "checkin")
            checkout = _parse_day(self.checkout, "checkout")
            if checkout <= checkin:
                raise InvalidParamsError("checkout date must be after checkin date")
        elif self.checkin is not None or self.checkout is not None:
            raise InvalidParamsError("both checkin and checkout must be provided together")

        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise InvalidParamsError("min_price cannot be greater than max_price")

    def to_query_pairs(self) -> list[tuple[str, str]]:
        candidates = [
            ("checkin", self.checkin),
            ("checkout", self.checkout),
            ("adults", self.adults),
            ("children", self.children),
            ("infants", self.infants),
            ("pets", self.pets),
            ("price_min", self.min_price),
            ("price_max", self.max_price),
            ("property_type", self.property_type),
            ("cursor", self.cursor),
        ]
        return [(key, str(value)) for key, value in candidates if value is not None]

    def cache_key(self) -> str:
        """Deterministic key over every parameter, location trimmed and lower-cased."""
        parts = [
            ("ci", self.checkin),
            ("co", self.checkout),
            ("a", self.adults),
            ("ch", self.children),
            ("inf", self.infants),
            ("p", self.pets),
            ("min", self.min_price),
            ("max", self.max_price),
            ("pt", self.property_type.lower() if self.property_type else None),
            ("cur", self.cursor),
        ]
        suffix = ":".join(f"{name}={'' if value is None else value}" for name, value in parts)
        return f"{self.location.strip().lower()}:{suffix}"
