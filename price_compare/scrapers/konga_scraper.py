# price_compare/scrapers/konga_scraper.py

"""Source adapter for konga.com (Nigeria, NGN prices)."""

from price_compare.scrapers.base_scraper import BaseScraper
from price_compare.services.scraper_transport import ScraperTransport


class KongaScraper(BaseScraper):
    """Source adapter for konga.com; search only."""

    def __init__(
        self,
        transport: ScraperTransport | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__("konga", "Konga", transport, enabled)

    def _get_homepage(self) -> str:
        """Return the Konga homepage URL."""
        return "https://www.konga.com/"
