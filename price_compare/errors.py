# price_compare/errors.py

"""Exception hierarchy shared by adapters, cache, currency and comparator."""


class PriceCheckError(Exception):
    """Base exception for the price comparison engine."""

    status_code: int = 500

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        super().__init__(message)


class NetworkError(PriceCheckError):
    """Transport failure: timeout, refused connection, non-2xx reply."""

    status_code = 502


class ParseError(PriceCheckError):
    """Malformed upstream payload or unrecognisable price text."""

    status_code = 422


class MissingFieldError(PriceCheckError):
    """A required element is absent from an upstream response."""

    status_code = 422


class CacheError(PriceCheckError):
    """Cache backend unreachable or holding a corrupt payload."""

    status_code = 503


class InternalError(PriceCheckError):
    """Misconfiguration, e.g. a credential absent for an enabled source."""

    status_code = 500


class SourceDisabledError(InternalError):
    """Raised by an adapter whose source is administratively disabled."""


class NoMatchError(PriceCheckError):
    """Zero quotes survived confidence filtering."""

    status_code = 404

    def __init__(
        self,
        search_text: str,
        candidates_found: int,
        min_confidence: int,
    ) -> None:
        self.search_text = search_text
        self.candidates_found = candidates_found
        self.min_confidence = min_confidence
        if candidates_found == 0:
            message = (
                f"No candidates returned for '{search_text}'. "
                "Check the scraper credentials, enable sources, or set "
                "USE_MOCK_DATA=true for demonstration."
            )
        else:
            message = (
                f"No product met the confidence threshold of "
                f"{min_confidence}% for '{search_text}' "
                f"({candidates_found} candidates rejected). "
                "Lower PRODUCT_MATCH_MIN_CONFIDENCE or supply "
                "stronger identifiers."
            )
        super().__init__(message)

    @property
    def below_threshold(self) -> bool:
        """True when candidates existed but all scored too low."""
        return self.candidates_found > 0
