# price_compare/services/scraper_transport.py

"""Client for the external scraping provider (ZenRows-style API).

The provider does the page retrieval, proxying and JavaScript rendering;
this client only issues requests to it and hands back the HTML or the
structured record it returns.
"""

import json
import logging
from typing import Any

from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.errors import InternalError, ParseError
from price_compare.services.retry_policy import RetryPolicy

logger = logging.getLogger("price_compare.transport")


class ScraperTransport:
    """Shared, long-lived HTTP client for the scraping provider."""

    def __init__(
        self,
        api_key: str | None = None,
        session: curl_requests.Session | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.settings = Settings()
        self.api_key = (
            api_key if api_key is not None
            else self.settings.SCRAPER_API_KEY
        )
        self.api_url = self.settings.SCRAPER_API_URL
        self.ecommerce_url = self.settings.SCRAPER_ECOMMERCE_API_URL.rstrip("/")
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> str:
        if not self.api_key:
            raise InternalError(
                "Scraper API key required for live scraping. "
                "Set SCRAPER_API_KEY (or ZENROWS_API_KEY)"
            )
        return self.api_key

    def render_page(self, url: str, render_js: bool = True) -> str:
        """Fetch *url* through the provider and return the page HTML."""
        params: dict[str, str] = {
            "apikey": self._require_key(),
            "url": url,
        }
        if render_js:
            params["js_render"] = "true"

        logger.debug("Rendering %s (js=%s)", url, render_js)
        resp = self.retry_policy.execute(
            lambda: self.session.get(
                self.api_url,
                params=params,
                headers=self.settings.DEFAULT_HEADERS,
                timeout=self._request_timeout,
            ),
            label="scraper render",
        )
        text: str = resp.text
        return text

    def lookup_by_strong_id(
        self, marketplace: str, item_id: str,
    ) -> dict[str, Any]:
        """Fetch the provider's structured product record for an item."""
        endpoint = (
            f"{self.ecommerce_url}/{marketplace}/products/{item_id}"
        )
        params = {"apikey": self._require_key()}

        logger.debug(
            "Structured lookup %s/%s", marketplace, item_id
        )
        resp = self.retry_policy.execute(
            lambda: self.session.get(
                endpoint,
                params=params,
                timeout=self._request_timeout,
            ),
            label=f"{marketplace} lookup",
        )
        try:
            record = json.loads(resp.text)
        except ValueError as exc:
            raise ParseError(
                f"Invalid {marketplace} product record: {exc}",
                source=marketplace,
            ) from exc
        if not isinstance(record, dict):
            raise ParseError(
                f"Unexpected {marketplace} product record type: "
                f"{type(record).__name__}",
                source=marketplace,
            )
        return record
