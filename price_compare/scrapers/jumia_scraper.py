# price_compare/scrapers/jumia_scraper.py

"""Source adapter for jumia.com.ng (Nigeria, NGN prices)."""

from price_compare.scrapers.base_scraper import BaseScraper
from price_compare.services.scraper_transport import ScraperTransport


class JumiaScraper(BaseScraper):
    """Source adapter for jumia.com.ng; search only."""

    def __init__(
        self,
        transport: ScraperTransport | None = None,
        enabled: bool = True,
    ) -> None:
        super().__init__("jumia", "Jumia", transport, enabled)

    def _get_homepage(self) -> str:
        """Return the Jumia Nigeria homepage URL."""
        return "https://www.jumia.com.ng/"
