# price_compare/filters/quote_validator.py

"""Quote validation: drop adapter output missing essential fields."""

import logging

from price_compare.models.quote import SourceQuote

logger = logging.getLogger("price_compare.filters")


class QuoteValidator:
    """Drop quotes with blank titles or non-positive prices."""

    @staticmethod
    def validate(
        quotes: list[SourceQuote],
    ) -> tuple[list[SourceQuote], int]:
        """Return the valid quotes and the count of dropped items."""
        valid: list[SourceQuote] = []
        dropped = 0

        for quote in quotes:
            if not quote.title.strip():
                logger.debug(
                    "Dropped quote with empty title (site=%s, url=%s)",
                    quote.site,
                    quote.url,
                )
                dropped += 1
                continue
            if quote.price <= 0:
                logger.debug(
                    "Dropped quote with zero/negative price "
                    "(title=%s, site=%s)",
                    quote.title,
                    quote.site,
                )
                dropped += 1
                continue
            valid.append(quote)

        if dropped:
            logger.info("Validation dropped %d invalid quotes", dropped)

        return valid, dropped
