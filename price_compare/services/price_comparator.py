# price_compare/services/price_comparator.py

"""Top-level comparison: cache, fetch, normalise, rank."""

import asyncio
import dataclasses
import logging

from price_compare.config.settings import Settings
from price_compare.errors import CacheError, InternalError, NoMatchError
from price_compare.filters.identity_matcher import filter_by_confidence
from price_compare.models.comparison import ComparisonResult
from price_compare.models.product import ProductIdentifiers
from price_compare.models.quote import ScoredQuote
from price_compare.services.currency_service import CurrencyService
from price_compare.services.fetch_orchestrator import FetchOrchestrator
from price_compare.storage.result_cache import ResultCache

logger = logging.getLogger("price_compare.comparator")


class PriceComparator:
    """Owns the long-lived collaborators and answers ``compare`` calls.

    The cache is consulted first and written last; a cache that cannot
    be read or written only costs a live fetch, never the answer.
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        orchestrator: FetchOrchestrator | None = None,
        currency_service: CurrencyService | None = None,
        min_confidence: int | None = None,
    ) -> None:
        self.min_confidence = (
            min_confidence if min_confidence is not None
            else Settings.PRODUCT_MATCH_MIN_CONFIDENCE
        )
        self.cache = cache or ResultCache()
        self.orchestrator = orchestrator or FetchOrchestrator(
            min_confidence=self.min_confidence
        )
        self.currency_service = currency_service or CurrencyService(
            backend=self.cache.backend
        )

    def _check_request(self, search_text: str) -> None:
        if not search_text or not search_text.strip():
            raise InternalError("Search text must not be empty")
        if not 0 <= self.min_confidence <= 100:
            raise InternalError(
                f"PRODUCT_MATCH_MIN_CONFIDENCE must be within 0..100, "
                f"got {self.min_confidence}"
            )

    def _read_cache(self, search_text: str) -> ComparisonResult | None:
        try:
            return self.cache.get(search_text)
        except CacheError as exc:
            logger.warning("Cache unavailable, fetching live: %s", exc)
            return None

    # ── Normalisation ────────────────────────────────────

    def _to_usd(self, quote: ScoredQuote) -> ScoredQuote:
        usd = self.currency_service.safe_convert(
            quote.price, quote.currency, "USD"
        )
        return dataclasses.replace(quote, price_usd=usd)

    def _to_target(self, quote: ScoredQuote, target: str) -> ScoredQuote:
        converted = self.currency_service.safe_convert(
            quote.price_usd, "USD", target
        )
        return dataclasses.replace(
            quote, price_converted=converted, target_currency=target
        )

    def _retarget(
        self, result: ComparisonResult, target: str | None,
    ) -> ComparisonResult:
        """Re-express a cached result in another target currency."""
        if all(q.target_currency == target for q in result.prices):
            return result
        if target is None:
            prices = [
                dataclasses.replace(
                    q, price_converted=None, target_currency=None
                )
                for q in result.prices
            ]
        else:
            prices = [self._to_target(q, target) for q in result.prices]
        return ComparisonResult(prices=prices)

    def _normalise(
        self, quotes: list[ScoredQuote], target: str | None,
    ) -> list[ScoredQuote]:
        """USD amounts first, then the optional target currency."""
        quotes = [self._to_usd(q) for q in quotes]
        if target is not None:
            quotes = [self._to_target(q, target) for q in quotes]
        return quotes

    # ── Public API ───────────────────────────────────────

    async def compare(
        self,
        search_text: str,
        identifiers: ProductIdentifiers | None = None,
        target_currency: str | None = None,
    ) -> ComparisonResult:
        """Rank verified quotes for a product, cheapest first.

        Cache access and rate refreshes run in worker threads.

        Raises:
            NoMatchError: no quote met the confidence threshold.
            InternalError: blank search text or invalid threshold.
        """
        self._check_request(search_text)
        target = target_currency.upper() if target_currency else None

        cached = await asyncio.to_thread(self._read_cache, search_text)
        if cached is not None:
            return await asyncio.to_thread(self._retarget, cached, target)

        ids = identifiers or ProductIdentifiers()
        fetched = await self.orchestrator.fetch_all(ids, search_text)

        survivors = filter_by_confidence(fetched.quotes, self.min_confidence)
        if not survivors:
            raise NoMatchError(
                search_text, fetched.total_candidates, self.min_confidence
            )

        survivors = await asyncio.to_thread(self._normalise, survivors, target)

        result = ComparisonResult.from_quotes(survivors)
        best = result.best_deal
        if best is not None:
            logger.info(
                "Best deal for '%s': %s at %s %s (%d quotes)",
                search_text,
                best.site,
                best.price,
                best.currency,
                len(result.prices),
            )

        await asyncio.to_thread(self.cache.put, search_text, result)
        return result

    def invalidate(self, search_text: str) -> bool:
        """Drop the cached result for *search_text*.

        Raises:
            CacheError: the backend could not be reached.
        """
        return self.cache.invalidate(search_text)
