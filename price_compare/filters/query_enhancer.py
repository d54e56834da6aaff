# price_compare/filters/query_enhancer.py

"""Pre-scrape query enrichment with brand and model text."""

import logging

from price_compare.config.settings import Settings
from price_compare.models.product import ProductIdentifiers

logger = logging.getLogger("price_compare.filters")


class QueryEnhancer:
    """Enrich search queries with identifiers for supported platforms."""

    @staticmethod
    def enhance_query(
        query: str,
        identifiers: ProductIdentifiers,
        platform: str,
    ) -> str:
        """Append brand and model text the query does not already carry.

        Only platforms listed in QUERY_ENHANCED_PLATFORMS (e.g. eBay)
        rank better with the extra terms; others get the query unchanged.
        """
        if platform not in Settings.QUERY_ENHANCED_PLATFORMS:
            return query

        lowered = query.lower()
        extras = [
            part
            for part in (identifiers.brand, identifiers.model_text())
            if part and part.lower() not in lowered
        ]
        if not extras:
            return query

        enhanced = " ".join([query, *extras])
        logger.debug(
            "Enhanced query for %s: '%s'", platform, enhanced
        )
        return enhanced
