# tests/test_models.py

"""Tests for identifier, quote, comparison and rate-set models."""

import unittest
from datetime import datetime, timezone
from decimal import Decimal

from price_compare.models.comparison import ComparisonResult
from price_compare.models.exchange_rates import ExchangeRateSet
from price_compare.models.product import (
    ProductIdentifiers,
    extract_asin,
    extract_ebay_item_id,
)
from price_compare.models.quote import ScoredQuote, SourceQuote


def _scored(site: str, usd: str, confidence: int = 90) -> ScoredQuote:
    return ScoredQuote(
        site=site,
        title=f"{site} listing",
        price=Decimal(usd),
        currency="USD",
        url=f"https://{site.lower()}.example/item",
        confidence=confidence,
        price_usd=Decimal(usd),
    )


class TestProductIdentifiers(unittest.TestCase):
    """ProductIdentifiers construction helpers."""

    def test_from_dict_strips_and_drops_blanks(self) -> None:
        ids = ProductIdentifiers.from_dict(
            {
                "upc": " 194253401445 ",
                "brand": "",
                "model_number": "A2848",
                "specifications": {"color": " black ", "": "x", "size": ""},
            }
        )
        self.assertEqual(ids.upc, "194253401445")
        self.assertIsNone(ids.brand)
        self.assertEqual(ids.specifications, {"color": "black"})

    def test_from_dict_none(self) -> None:
        self.assertFalse(ProductIdentifiers.from_dict(None).has_any())

    def test_from_url_amazon(self) -> None:
        ids = ProductIdentifiers.from_url(
            "https://www.amazon.com/Apple-iPhone/dp/B0CHX1W1XY/ref=sr_1_1"
        )
        self.assertEqual(ids.asin, "B0CHX1W1XY")
        self.assertIsNone(ids.ebay_item_id)

    def test_from_url_ebay(self) -> None:
        ids = ProductIdentifiers.from_url(
            "https://www.ebay.com/itm/256123456789?hash=item3b"
        )
        self.assertEqual(ids.ebay_item_id, "256123456789")
        self.assertIsNone(ids.asin)

    def test_from_url_other_site(self) -> None:
        ids = ProductIdentifiers.from_url("https://www.jumia.com.ng/x.html")
        self.assertFalse(ids.has_any())

    def test_merged_with_prefers_self(self) -> None:
        mine = ProductIdentifiers(brand="Apple", specifications={"color": "black"})
        other = ProductIdentifiers(
            brand="Samsung", asin="B0CHX1W1XY", specifications={"color": "blue"}
        )
        merged = mine.merged_with(other)
        self.assertEqual(merged.brand, "Apple")
        self.assertEqual(merged.asin, "B0CHX1W1XY")
        self.assertEqual(merged.specifications, {"color": "black"})

    def test_specifications_read_only(self) -> None:
        source = {"color": "black"}
        ids = ProductIdentifiers(brand="Apple", specifications=source)
        with self.assertRaises(TypeError):
            ids.specifications["color"] = "blue"  # type: ignore[index]
        source["color"] = "blue"
        self.assertEqual(ids.specifications, {"color": "black"})

    def test_hashable_and_equal_by_value(self) -> None:
        a = ProductIdentifiers(brand="Apple", specifications={"color": "black"})
        b = ProductIdentifiers(brand="Apple", specifications={"color": "black"})
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)

    def test_model_text_falls_back_to_mpn(self) -> None:
        self.assertEqual(ProductIdentifiers(mpn="MTV13LL").model_text(), "MTV13LL")
        self.assertEqual(
            ProductIdentifiers(mpn="MTV13LL", model_number="A2848").model_text(),
            "A2848",
        )


class TestUrlExtraction(unittest.TestCase):
    """ASIN and eBay item id extraction from product URLs."""

    def test_asin_gp_product(self) -> None:
        self.assertEqual(
            extract_asin("https://www.amazon.com/gp/product/B08N5WRWNW?th=1"),
            "B08N5WRWNW",
        )

    def test_asin_too_short(self) -> None:
        self.assertIsNone(extract_asin("https://www.amazon.com/dp/B08N5"))

    def test_ebay_item_with_slug(self) -> None:
        self.assertEqual(
            extract_ebay_item_id("https://www.ebay.com/itm/apple-iphone/1234567890"),
            "1234567890",
        )

    def test_ebay_no_item_segment(self) -> None:
        self.assertIsNone(extract_ebay_item_id("https://www.ebay.com/sch/i.html"))


class TestScoredQuote(unittest.TestCase):
    """Confidence bounds and serialisation."""

    def test_confidence_above_100_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _scored("Amazon", "10", confidence=101)

    def test_negative_confidence_rejected(self) -> None:
        with self.assertRaises(ValueError):
            _scored("Amazon", "10", confidence=-1)

    def test_from_quote_copies_price_to_usd(self) -> None:
        raw = SourceQuote(site="Jumia", title="Phone", price=Decimal("50000"), currency="NGN")
        scored = ScoredQuote.from_quote(raw, 80)
        self.assertEqual(scored.price_usd, Decimal("50000"))
        self.assertEqual(scored.confidence, 80)

    def test_to_dict_uses_wire_names(self) -> None:
        data = _scored("eBay", "849.99").to_dict()
        self.assertEqual(data["price"], "849.99")
        self.assertEqual(data["match_confidence"], 90)
        self.assertEqual(data["link"], "https://ebay.example/item")
        self.assertIsNone(data["price_converted"])


class TestComparisonResult(unittest.TestCase):
    """Ranking and cache payload fidelity."""

    def test_sorted_ascending_and_best_deal(self) -> None:
        result = ComparisonResult.from_quotes(
            [_scored("A", "30"), _scored("B", "10"), _scored("C", "20")]
        )
        self.assertEqual([q.site for q in result.prices], ["B", "C", "A"])
        assert result.best_deal is not None
        self.assertEqual(result.best_deal.site, "B")

    def test_ties_keep_input_order(self) -> None:
        result = ComparisonResult.from_quotes(
            [_scored("First", "10"), _scored("Second", "10"), _scored("Cheap", "5")]
        )
        self.assertEqual(
            [q.site for q in result.prices], ["Cheap", "First", "Second"]
        )

    def test_empty_has_no_best_deal(self) -> None:
        self.assertIsNone(ComparisonResult().best_deal)
        self.assertIsNone(ComparisonResult().to_dict()["best_deal"])

    def test_json_payload_restores_equal_result(self) -> None:
        original = ComparisonResult.from_quotes(
            [_scored("A", "1299.99"), _scored("B", "0.10", confidence=100)]
        )
        restored = ComparisonResult.from_json(original.to_json())
        self.assertEqual(restored, original)


class TestExchangeRateSet(unittest.TestCase):
    """Rate lookups are case-insensitive and survive JSON storage."""

    def test_rate_for_and_json(self) -> None:
        rates = ExchangeRateSet(
            base="USD",
            rates={"USD": Decimal("1"), "NGN": Decimal("1550.5")},
            captured_at=datetime(2026, 1, 5, tzinfo=timezone.utc),
        )
        self.assertEqual(rates.rate_for("ngn"), Decimal("1550.5"))
        self.assertIsNone(rates.rate_for("EUR"))
        self.assertEqual(ExchangeRateSet.from_json(rates.to_json()), rates)


if __name__ == "__main__":
    unittest.main()
