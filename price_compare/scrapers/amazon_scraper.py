# price_compare/scrapers/amazon_scraper.py

"""Source adapter for amazon.com (ASIN lookup, then search)."""

from price_compare.scrapers.base_scraper import BaseScraper
from price_compare.services.scraper_transport import ScraperTransport


class AmazonScraper(BaseScraper):
    """Source adapter for amazon.com."""

    strong_id_field = "asin"

    def __init__(
        self,
        transport: ScraperTransport | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__("amazon", "Amazon", transport, enabled)

    def _get_homepage(self) -> str:
        """Return the Amazon.com homepage URL."""
        return "https://www.amazon.com/"

    def _item_url(self, item_id: str) -> str:
        return f"https://www.amazon.com/dp/{item_id}"
