# tests/test_query_enhancer.py

"""Tests for QueryEnhancer pre-scrape query enrichment."""

import unittest

from price_compare.filters.query_enhancer import QueryEnhancer
from price_compare.models.product import ProductIdentifiers


class TestEnhanceQuery(unittest.TestCase):
    """QueryEnhancer.enhance_query behaviour."""

    def test_ebay_gets_brand_and_model(self) -> None:
        ids = ProductIdentifiers(brand="Sony", model_number="WH-1000XM5")
        self.assertEqual(
            QueryEnhancer.enhance_query("headphones", ids, "ebay"),
            "headphones Sony WH-1000XM5",
        )

    def test_terms_already_present_not_repeated(self) -> None:
        ids = ProductIdentifiers(brand="Sony", model_number="WH-1000XM5")
        self.assertEqual(
            QueryEnhancer.enhance_query("sony wh-1000xm5", ids, "ebay"),
            "sony wh-1000xm5",
        )

    def test_mpn_used_without_model_number(self) -> None:
        ids = ProductIdentifiers(mpn="MTV13LL/A")
        self.assertEqual(
            QueryEnhancer.enhance_query("iphone", ids, "ebay"),
            "iphone MTV13LL/A",
        )

    def test_other_platforms_unchanged(self) -> None:
        ids = ProductIdentifiers(brand="Sony")
        for platform in ("amazon", "jumia", "konga"):
            self.assertEqual(
                QueryEnhancer.enhance_query("headphones", ids, platform),
                "headphones",
            )

    def test_no_identifiers_unchanged(self) -> None:
        self.assertEqual(
            QueryEnhancer.enhance_query("tv", ProductIdentifiers(), "ebay"),
            "tv",
        )


if __name__ == "__main__":
    unittest.main()
