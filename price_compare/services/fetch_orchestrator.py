# price_compare/services/fetch_orchestrator.py

"""Fans a product lookup out to every registered source concurrently."""

import asyncio
import importlib
import logging
from dataclasses import dataclass, field
from typing import Any

from price_compare.config.settings import Settings
from price_compare.errors import InternalError, SourceDisabledError
from price_compare.filters.identity_matcher import (
    filter_by_confidence,
    score_quote,
)
from price_compare.filters.quote_validator import QuoteValidator
from price_compare.models.product import ProductIdentifiers
from price_compare.models.quote import ScoredQuote, SourceQuote
from price_compare.services.mock_quotes import generate_mock_quote
from price_compare.services.scraper_transport import ScraperTransport

logger = logging.getLogger("price_compare.orchestrator")


@dataclass
class FetchResult:
    """Outcome of one fan-out across all sources."""

    quotes: list[ScoredQuote] = field(
        default_factory=lambda: list[ScoredQuote]()
    )
    total_candidates: int = 0
    below_threshold: int = 0
    invalid_count: int = 0
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


def _load_scraper_class(dotted_path: str) -> type[Any]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class FetchOrchestrator:
    """Runs every adapter, then validates, scores and thresholds quotes.

    Adapter failures of any kind are logged and recorded in
    :attr:`FetchResult.errors`; they never abort the other adapters.
    """

    def __init__(
        self,
        transport: ScraperTransport | None = None,
        min_confidence: int | None = None,
        mock_mode: bool | None = None,
        sources: list[dict[str, str]] | None = None,
    ) -> None:
        self.settings = Settings()
        self.transport = transport or ScraperTransport()
        self.min_confidence = (
            min_confidence if min_confidence is not None
            else self.settings.PRODUCT_MATCH_MIN_CONFIDENCE
        )
        self.mock_mode = (
            mock_mode if mock_mode is not None
            else self.settings.USE_MOCK_DATA
        )
        self.sources = (
            sources if sources is not None
            else self.settings.AVAILABLE_SOURCES
        )
        self.adapter_timeout = self.settings.ADAPTER_TIMEOUT

    # ── Adapter construction ─────────────────────────────

    def _build_scrapers(self) -> tuple[list[Any], list[str]]:
        scrapers: list[Any] = []
        errors: list[str] = []
        for src in self.sources:
            try:
                scraper_cls = _load_scraper_class(src["scraper"])
                scrapers.append(
                    scraper_cls(
                        transport=self.transport,
                        enabled=Settings.is_source_enabled(src),
                    )
                )
            except (ImportError, AttributeError, ValueError, OSError) as exc:
                logger.error(
                    "Could not load adapter %s: %s", src["scraper"], exc
                )
                errors.append(f"{src['id']}: {exc}")

        if not scrapers:
            raise InternalError(
                "No source adapter could be loaded; check AVAILABLE_SOURCES"
            )
        return scrapers, errors

    # ── Dispatch ─────────────────────────────────────────

    async def _run_adapters(
        self,
        identifiers: ProductIdentifiers,
        search_text: str,
    ) -> tuple[list[SourceQuote], list[str]]:
        if self.mock_mode:
            logger.info("Mock mode: synthesising quotes for '%s'", search_text)
            return [
                generate_mock_quote(search_text, src["label"])
                for src in self.sources
            ], []

        scrapers, errors = self._build_scrapers()

        async def run_one(scraper: Any) -> SourceQuote:
            quote: SourceQuote = await asyncio.wait_for(
                asyncio.to_thread(scraper.fetch, identifiers, search_text),
                timeout=self.adapter_timeout,
            )
            return quote

        outcomes = await asyncio.gather(
            *(run_one(s) for s in scrapers), return_exceptions=True
        )

        quotes: list[SourceQuote] = []
        for scraper, outcome in zip(scrapers, outcomes):
            if isinstance(outcome, SourceQuote):
                quotes.append(outcome)
            elif isinstance(outcome, SourceDisabledError):
                logger.info("%s skipped: %s", scraper.source_name, outcome)
                errors.append(f"{scraper.source_name}: {outcome}")
            elif isinstance(outcome, TimeoutError):
                logger.error(
                    "%s timed out after %.0fs",
                    scraper.source_name,
                    self.adapter_timeout,
                )
                errors.append(f"{scraper.source_name}: timed out")
            elif isinstance(outcome, Exception):
                logger.error(
                    "Adapter error for %s on '%s': %s",
                    scraper.source_name,
                    search_text,
                    outcome,
                    exc_info=outcome,
                )
                errors.append(f"{scraper.source_name}: {outcome}")

        return quotes, errors

    # ── Public entry point ───────────────────────────────

    async def fetch_all(
        self,
        identifiers: ProductIdentifiers,
        search_text: str,
    ) -> FetchResult:
        """Collect, validate and score one quote per responding source."""
        result = FetchResult()
        raw, result.errors = await self._run_adapters(identifiers, search_text)

        valid, result.invalid_count = QuoteValidator.validate(raw)
        result.total_candidates = len(valid)

        scored = [score_quote(identifiers, q) for q in valid]
        result.quotes = filter_by_confidence(scored, self.min_confidence)
        result.below_threshold = len(scored) - len(result.quotes)

        logger.info(
            "Fetched %d candidates for '%s': %d kept, %d below %d%%, "
            "%d invalid, %d errors",
            result.total_candidates,
            search_text,
            len(result.quotes),
            result.below_threshold,
            self.min_confidence,
            result.invalid_count,
            len(result.errors),
        )
        return result
