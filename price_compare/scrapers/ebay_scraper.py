# price_compare/scrapers/ebay_scraper.py

"""Source adapter for ebay.com (item-number lookup, then search)."""

from price_compare.scrapers.base_scraper import BaseScraper
from price_compare.services.scraper_transport import ScraperTransport


class EbayScraper(BaseScraper):
    """Source adapter for ebay.com.

    Search queries are enriched with brand and model text, which eBay's
    keyword ranking rewards.
    """

    strong_id_field = "ebay_item_id"

    def __init__(
        self,
        transport: ScraperTransport | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__("ebay", "eBay", transport, enabled)

    def _get_homepage(self) -> str:
        """Return the eBay.com homepage URL."""
        return "https://www.ebay.com/"

    def _item_url(self, item_id: str) -> str:
        return f"https://www.ebay.com/itm/{item_id}"
