# price_compare/models/quote.py

"""Quote data models: raw adapter output and scored, normalised quotes."""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass
class SourceQuote:
    """One source's listing for the product, before scoring."""

    site: str
    title: str
    price: Decimal
    currency: str = "USD"
    url: str = ""
    image_url: str | None = None
    confidence: int | None = None  # Set only when exact by construction
    specifications: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ScoredQuote:
    """A quote with its match confidence and normalised prices.

    Instances are immutable: confidence is fixed at creation and price
    conversions produce new instances via ``dataclasses.replace``.
    """

    site: str
    title: str
    price: Decimal
    currency: str
    url: str
    confidence: int
    price_usd: Decimal
    image_url: str | None = None
    price_converted: Decimal | None = None
    target_currency: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.confidence <= 100:
            msg = f"confidence must be within 0..100, got {self.confidence}"
            raise ValueError(msg)

    @classmethod
    def from_quote(
        cls, quote: SourceQuote, confidence: int,
    ) -> "ScoredQuote":
        """Attach a confidence score; USD amount starts as the raw price."""
        return cls(
            site=quote.site,
            title=quote.title,
            price=quote.price,
            currency=quote.currency,
            url=quote.url,
            confidence=confidence,
            price_usd=quote.price,
            image_url=quote.image_url,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to plain JSON types; Decimals become strings."""
        return {
            "site": self.site,
            "title": self.title,
            "price": str(self.price),
            "currency": self.currency,
            "price_usd": str(self.price_usd),
            "price_converted": (
                str(self.price_converted)
                if self.price_converted is not None
                else None
            ),
            "target_currency": self.target_currency,
            "link": self.url,
            "image": self.image_url,
            "match_confidence": self.confidence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScoredQuote":
        """Inverse of :meth:`to_dict`."""
        converted = data.get("price_converted")
        return cls(
            site=data["site"],
            title=data["title"],
            price=Decimal(data["price"]),
            currency=data["currency"],
            url=data["link"],
            confidence=int(data["match_confidence"]),
            price_usd=Decimal(data["price_usd"]),
            image_url=data.get("image"),
            price_converted=(
                Decimal(converted) if converted is not None else None
            ),
            target_currency=data.get("target_currency"),
        )
