# price_compare/config/settings.py

"""Central configuration for the price_compare engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    """Read a true/false flag from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    """Read an integer from the environment, keeping the default on junk."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, keeping the default on junk."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Central configuration for the price_compare engine."""

    # --- Scraping transport ---
    SCRAPER_API_KEY: str = (
        os.getenv("SCRAPER_API_KEY")
        or os.getenv("ZENROWS_API_KEY")
        or ""
    )
    SCRAPER_API_URL: str = os.getenv(
        "SCRAPER_API_URL", "https://api.zenrows.com/v1/"
    )
    SCRAPER_ECOMMERCE_API_URL: str = os.getenv(
        "SCRAPER_ECOMMERCE_API_URL",
        "https://ecommerce.api.zenrows.com/v1/targets",
    )
    REQUEST_TIMEOUT: int = _env_int("REQUEST_TIMEOUT", 30)   # Per HTTP call
    MAX_RETRIES: int = _env_int("MAX_RETRIES", 3)            # Retries after the first try
    RETRY_BASE_DELAY: float = _env_float("RETRY_BASE_DELAY", 1.0)
    ADAPTER_TIMEOUT: float = _env_float("ADAPTER_TIMEOUT", 150.0)

    # --- Matching ---
    PRODUCT_MATCH_MIN_CONFIDENCE: int = _env_int(
        "PRODUCT_MATCH_MIN_CONFIDENCE", 70
    )
    SEARCH_RESULT_CONFIDENCE: int = 70  # Provisional, replaced by the matcher
    USE_MOCK_DATA: bool = _env_bool("USE_MOCK_DATA", True)
    QUERY_ENHANCED_PLATFORMS: list[str] = ["ebay"]

    # --- Result cache ---
    REDIS_URL: str = os.getenv("REDIS_URL", "")  # Empty = in-process cache
    CACHE_TTL_SECONDS: int = _env_int("CACHE_TTL_SECONDS", 300)
    CACHE_KEY_PREFIX: str = "price_check:"

    # --- Currency ---
    EXCHANGE_RATE_API_URL: str = os.getenv(
        "EXCHANGE_RATE_API_URL",
        "https://api.exchangerate-api.com/v4/latest/USD",
    )
    EXCHANGE_RATE_CACHE_TTL_HOURS: int = _env_int(
        "EXCHANGE_RATE_CACHE_TTL_HOURS", 24
    )
    EXCHANGE_RATE_CACHE_KEY: str = "exchange_rates:usd"
    FALLBACK_RATES_RETRY_SECONDS: int = 300  # Retry the API sooner after a failure

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "text/html,application/json,application/xhtml+xml",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = (
        BASE_DIR / "price_compare" / "config" / "selectors.json"
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (registry of adapters) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "amazon",
            "label": "Amazon",
            "scraper": "price_compare.scrapers.amazon_scraper.AmazonScraper",
            "enabled_env": "AMAZON_ENABLED",
        },
        {
            "id": "ebay",
            "label": "eBay",
            "scraper": "price_compare.scrapers.ebay_scraper.EbayScraper",
            "enabled_env": "EBAY_ENABLED",
        },
        {
            "id": "jumia",
            "label": "Jumia",
            "scraper": "price_compare.scrapers.jumia_scraper.JumiaScraper",
            "enabled_env": "JUMIA_ENABLED",
        },
        {
            "id": "konga",
            "label": "Konga",
            "scraper": "price_compare.scrapers.konga_scraper.KongaScraper",
            "enabled_env": "KONGA_ENABLED",
        },
    ]

    @staticmethod
    def is_source_enabled(source: dict[str, str]) -> bool:
        """Return the administrative on/off flag for a registered source."""
        return _env_bool(source.get("enabled_env", ""), False)
