class AirbnbError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TransportError(AirbnbError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"HTTP request failed: {reason}")


class ParseError(AirbnbError):
    def __init__(self, reason: str, status_code: int | None = None):
        self.reason = reason
        super().__init__(f"Failed to parse HTML response: {reason}", status_code=status_code)


class ListingNotFoundError(AirbnbError):
    def __init__(self, listing_id: str):
        self.listing_id = listing_id
        super().__init__(f"Listing not found: {listing_id}", status_code=404)


class RateLimitError(AirbnbError):
    def __init__(self, service: str):
        self.service = service
        super().__init__("Rate limit exceeded, try again later", status_code=429)


class InvalidParamsError(AirbnbError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid search parameters: {reason}")


class ConfigError(AirbnbError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Configuration error: {reason}")
