# price_compare/models/product.py

"""Product identity data model used to match quotes across sites."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

_ASIN_PATH_MARKERS: tuple[str, ...] = ("/dp/", "/gp/product/", "/product/")
_ASIN_RE = re.compile(r"[A-Za-z0-9]+")

_ID_FIELDS: tuple[str, ...] = (
    "upc",
    "ean",
    "gtin",
    "asin",
    "mpn",
    "ebay_item_id",
    "model_number",
    "brand",
)


def _clean(value: Any) -> str | None:
    """Normalise an optional identifier to a stripped string or None."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ProductIdentifiers:
    """Structured identifiers for the product being compared.

    Every field is optional; a missing identifier means "unknown",
    never "does not match".  Specifications are held read-only and
    left out of the hash.
    """

    upc: str | None = None
    ean: str | None = None
    gtin: str | None = None
    asin: str | None = None
    mpn: str | None = None
    ebay_item_id: str | None = None
    model_number: str | None = None
    brand: str | None = None
    specifications: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "specifications", MappingProxyType(dict(self.specifications))
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProductIdentifiers":
        """Build identifiers from a loosely-typed mapping (JSON, CLI)."""
        if not data:
            return cls()
        specs_raw = data.get("specifications") or {}
        specs = {
            str(k).strip(): str(v).strip()
            for k, v in specs_raw.items()
            if str(k).strip() and str(v).strip()
        }
        kwargs: dict[str, Any] = {
            name: _clean(data.get(name)) for name in _ID_FIELDS
        }
        return cls(specifications=specs, **kwargs)

    @classmethod
    def from_url(cls, url: str) -> "ProductIdentifiers":
        """Extract marketplace identifiers (ASIN, eBay item) from a URL."""
        lowered = url.lower()
        asin = None
        ebay_item_id = None
        if "amazon." in lowered:
            asin = extract_asin(url)
        if "ebay." in lowered:
            ebay_item_id = extract_ebay_item_id(url)
        return cls(asin=asin, ebay_item_id=ebay_item_id)

    def merged_with(self, other: "ProductIdentifiers") -> "ProductIdentifiers":
        """Return a copy where fields missing here are taken from *other*."""
        kwargs: dict[str, Any] = {
            name: getattr(self, name) or getattr(other, name)
            for name in _ID_FIELDS
        }
        specs = {**other.specifications, **self.specifications}
        return ProductIdentifiers(specifications=specs, **kwargs)

    def has_any(self) -> bool:
        """True if at least one identifier or specification is known."""
        return bool(self.specifications) or any(
            getattr(self, name) for name in _ID_FIELDS
        )

    def model_text(self) -> str | None:
        """Model number, falling back to the manufacturer part number."""
        return self.model_number or self.mpn


def extract_asin(url: str) -> str | None:
    """Extract a 10-character ASIN following a known Amazon path marker."""
    for marker in _ASIN_PATH_MARKERS:
        idx = url.find(marker)
        if idx == -1:
            continue
        match = _ASIN_RE.match(url, idx + len(marker))
        if match and len(match.group(0)) >= 10:
            return match.group(0)[:10]
    return None


def extract_ebay_item_id(url: str) -> str | None:
    """Extract the numeric item id from an eBay ``/itm/`` URL."""
    idx = url.find("/itm/")
    if idx == -1:
        return None
    path = url[idx + len("/itm/"):].split("?", 1)[0].split("#", 1)[0]
    for part in reversed(path.split("/")):
        if part.isdigit():
            return part
    return None
