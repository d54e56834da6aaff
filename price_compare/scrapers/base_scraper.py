# price_compare/scrapers/base_scraper.py

"""Abstract base class for all marketplace source adapters."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import quote_plus, urlsplit

from bs4 import BeautifulSoup, Tag

from price_compare.config.settings import Settings
from price_compare.errors import (
    MissingFieldError,
    ParseError,
    PriceCheckError,
    SourceDisabledError,
)
from price_compare.filters.query_enhancer import QueryEnhancer
from price_compare.models.product import ProductIdentifiers
from price_compare.models.quote import SourceQuote
from price_compare.services.currency_service import parse_price
from price_compare.services.scraper_transport import ScraperTransport

_REQUIRED_SELECTORS: tuple[str, ...] = (
    "search_url", "container", "title", "price", "link",
)


class BaseScraper(ABC):
    """Turns identifiers + search text into at most one quote.

    Subclasses name their source, their homepage and, when the
    marketplace has a strong identifier, which field holds it.
    """

    # ProductIdentifiers field holding this marketplace's own item id.
    strong_id_field: str | None = None

    def __init__(
        self,
        source_name: str,
        label: str,
        transport: ScraperTransport | None = None,
        enabled: bool = True,
    ) -> None:
        self.source_name = source_name
        self.label = label
        self.logger = logging.getLogger(
            f"price_compare.{source_name}"
        )
        self.settings = Settings()
        self.selectors: dict[str, str] = self._load_selectors()
        self.transport = transport or ScraperTransport()
        self.enabled = enabled

    def _load_selectors(self) -> dict[str, str]:
        """Load CSS selectors for this source from selectors.json."""
        with open(self.settings.SELECTORS_PATH, encoding="utf-8") as f:
            all_selectors: dict[str, Any] = json.load(f)
        result: dict[str, str] = all_selectors.get(
            self.source_name, {}
        )
        missing = [k for k in _REQUIRED_SELECTORS if k not in result]
        if missing:
            msg = (
                f"selectors.json entry for '{self.source_name}' "
                f"lacks {', '.join(missing)}"
            )
            raise ValueError(msg)
        return result

    # ── Public contract ──────────────────────────────────

    def fetch(
        self,
        identifiers: ProductIdentifiers,
        search_text: str,
    ) -> SourceQuote:
        """Return this source's best quote for the product.

        Raises:
            SourceDisabledError: the source is switched off.
            NetworkError, ParseError, MissingFieldError: upstream trouble.
        """
        if not self.enabled:
            raise SourceDisabledError(
                f"{self.label} integration not enabled",
                source=self.source_name,
            )

        self.logger.info(
            "[%s] Fetching price for '%s'", self.source_name, search_text
        )

        strong_id = self._strong_id(identifiers)
        if strong_id:
            try:
                return self._lookup(strong_id)
            except PriceCheckError as exc:
                self.logger.warning(
                    "[%s] Lookup of %s failed, falling back to search: %s",
                    self.source_name,
                    strong_id,
                    exc,
                )

        query = QueryEnhancer.enhance_query(
            search_text, identifiers, self.source_name
        )
        return self._search(query)

    # ── Strong identifier path ───────────────────────────

    def _strong_id(self, identifiers: ProductIdentifiers) -> str | None:
        if self.strong_id_field is None:
            return None
        value: str | None = getattr(identifiers, self.strong_id_field)
        return value

    def _lookup(self, item_id: str) -> SourceQuote:
        """Structured lookup by marketplace id; exact by construction."""
        record = self.transport.lookup_by_strong_id(
            self.source_name, item_id
        )

        title = record.get("title")
        if not title:
            raise MissingFieldError(
                f"{self.label} product title", source=self.source_name
            )
        raw_price = record.get("price")
        if raw_price in (None, ""):
            raise MissingFieldError(
                f"{self.label} product price", source=self.source_name
            )

        price, currency = parse_price(str(raw_price), self._get_homepage())
        if record.get("currency"):
            currency = str(record["currency"]).upper()

        return SourceQuote(
            site=self.label,
            title=str(title).strip(),
            price=price,
            currency=currency,
            url=record.get("product_url") or self._item_url(item_id),
            image_url=record.get("image"),
            confidence=100,
            specifications={
                str(k): str(v)
                for k, v in (record.get("specifications") or {}).items()
            },
        )

    def _item_url(self, item_id: str) -> str:
        """Canonical product URL for a marketplace id."""
        return self._get_homepage()

    # ── Search path ──────────────────────────────────────

    def _build_search_url(self, query: str) -> str:
        return self.selectors["search_url"].format(query=quote_plus(query))

    def _search(self, query: str) -> SourceQuote:
        search_url = self._build_search_url(query)
        html = self.transport.render_page(search_url, render_js=True)
        soup = BeautifulSoup(html, "lxml")
        return self._parse_first_result(soup, search_url)

    @staticmethod
    def base_url(url: str) -> str:
        """Scheme and host of *url*, e.g. ``https://www.jumia.com.ng``."""
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ParseError(f"Invalid URL, no scheme/host: {url}")
        return f"{parts.scheme}://{parts.netloc}"

    @staticmethod
    def absolute_link(href: str, base: str) -> str:
        if href.startswith(("http://", "https://")):
            return href
        if href.startswith("//"):
            return f"{urlsplit(base).scheme}:{href}"
        return f"{base}/{href.lstrip('/')}"

    @staticmethod
    def _image_src(img: Tag | None) -> str | None:
        """Prefer a real lazy-load ``data-src`` over ``src``."""
        if img is None:
            return None
        lazy = img.get("data-src")
        if isinstance(lazy, str) and lazy and "data:image/svg" not in lazy:
            return lazy
        src = img.get("src")
        return src if isinstance(src, str) and src else None

    def _parse_first_result(
        self, soup: BeautifulSoup, search_url: str,
    ) -> SourceQuote:
        """Extract the first product card of a search results page."""
        base = self.base_url(search_url)

        container = soup.select_one(self.selectors["container"])
        if container is None:
            raise MissingFieldError(
                "No product container found", source=self.source_name
            )

        title_el = container.select_one(self.selectors["title"])
        title = title_el.get_text(strip=True) if title_el else ""
        if not title:
            raise MissingFieldError(
                "Product title", source=self.source_name
            )

        price_el = container.select_one(self.selectors["price"])
        if price_el is None:
            raise MissingFieldError(
                "Product price", source=self.source_name
            )
        price, currency = parse_price(price_el.get_text(), base)

        link_el = container.select_one(self.selectors["link"])
        href = link_el.get("href") if link_el else None
        if not isinstance(href, str) or not href:
            raise MissingFieldError(
                "Product link", source=self.source_name
            )

        image_sel = self.selectors.get("image", "")
        image = (
            self._image_src(container.select_one(image_sel))
            if image_sel
            else None
        )

        return SourceQuote(
            site=self.label,
            title=title,
            price=price,
            currency=currency,
            url=self.absolute_link(href, base),
            image_url=image,
            confidence=self.settings.SEARCH_RESULT_CONFIDENCE,
        )

    @abstractmethod
    def _get_homepage(self) -> str:
        """Return the storefront homepage URL (also a currency hint)."""
        ...

