# price_compare/services/mock_quotes.py

"""Deterministic demonstration quotes for when no scraper key is set."""

from decimal import ROUND_HALF_UP, Decimal

from price_compare.models.quote import SourceQuote

_CENT = Decimal("0.01")

# Keyword -> price multiplier, first match wins.
_CATEGORY_MULTIPLIERS: list[tuple[tuple[str, ...], Decimal]] = [
    (("laptop", "computer"), Decimal("8")),
    (("phone", "smartphone"), Decimal("5")),
    (("watch", "smartwatch"), Decimal("3")),
    (("headphones", "earbuds"), Decimal("1.5")),
]

_CATEGORY_BRANDS: list[tuple[str, tuple[str, ...]]] = [
    ("laptop", ("Dell", "HP", "Lenovo", "Apple", "Asus")),
    ("phone", ("Samsung", "Apple", "Google", "OnePlus", "Xiaomi")),
    ("watch", ("Apple", "Samsung", "Garmin", "Fitbit", "Fossil")),
    ("headphones", ("Sony", "Bose", "JBL", "Sennheiser", "Audio-Technica")),
]
_GENERIC_BRANDS = ("Premium", "Professional", "Ultimate", "Elite", "Advanced")

_SITE_MULTIPLIERS: dict[str, Decimal] = {
    "Amazon": Decimal("1.05"),
    "eBay": Decimal("0.95"),
    "Jumia": Decimal("1.02"),
    "Konga": Decimal("0.98"),
}


def hash_string(text: str) -> int:
    """31-multiplier rolling hash over UTF-8 bytes, wrapped to 32 bits."""
    acc = 0
    for byte in text.encode("utf-8"):
        acc = (acc * 31 + byte) & 0xFFFFFFFF
    return acc


def base_price(search_text: str) -> Decimal:
    """Stable 100-999 base, scaled up for pricier product categories."""
    base = Decimal(hash_string(search_text) % 900 + 100)
    lowered = search_text.lower()
    for keywords, multiplier in _CATEGORY_MULTIPLIERS:
        if any(k in lowered for k in keywords):
            return base * multiplier
    return base


def mock_title(search_text: str, site: str) -> str:
    lowered = search_text.lower()
    brands = _GENERIC_BRANDS
    for keyword, candidates in _CATEGORY_BRANDS:
        if keyword in lowered:
            brands = candidates
            break

    digest = hash_string(search_text)
    brand = brands[digest % len(brands)]
    model = f"Model {digest % 99 + 1}"

    if site == "Amazon":
        return f"{brand} {search_text} - {model} [Amazon Exclusive]"
    if site == "eBay":
        return f"{brand} {search_text} ({model}) - Certified Refurbished"
    if site == "Jumia":
        return f"{brand} {search_text} - {model} - Original"
    if site == "Konga":
        return f"{brand} {model} {search_text} - Brand New"
    return f"{brand} {model} {search_text}"


def generate_mock_quote(search_text: str, site: str) -> SourceQuote:
    """Build one USD quote; the same text and site always give the same price."""
    multiplier = _SITE_MULTIPLIERS.get(site, Decimal("1"))
    price = (base_price(search_text) * multiplier).quantize(
        _CENT, rounding=ROUND_HALF_UP
    )
    slug = site.lower()
    digest = hash_string(search_text)
    return SourceQuote(
        site=site,
        title=mock_title(search_text, site),
        price=price,
        currency="USD",
        url=f"https://www.{slug}.com/product/{digest}",
        image_url=f"https://www.{slug}.com/images/{digest}.jpg",
        confidence=100,
    )
