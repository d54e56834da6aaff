# tests/test_cli_runner.py

"""Tests for the headless CLI runner."""

import json
import unittest
from decimal import Decimal
from io import StringIO
from unittest.mock import AsyncMock, MagicMock, patch

from price_compare.cli.runner import (
    EXIT_INTERNAL,
    EXIT_NO_MATCH,
    EXIT_OK,
    build_identifiers,
    cli_compare,
    parse_specs,
    run_invalidate,
)
from price_compare.errors import CacheError, InternalError, NoMatchError
from price_compare.models.comparison import ComparisonResult
from price_compare.models.product import ProductIdentifiers
from price_compare.models.quote import ScoredQuote
from price_compare.services.price_comparator import PriceComparator


def _result() -> ComparisonResult:
    return ComparisonResult.from_quotes(
        [
            ScoredQuote(
                site="eBay",
                title="Sony WH-1000XM5",
                price=Decimal("279.00"),
                currency="USD",
                url="https://www.ebay.com/itm/1",
                confidence=90,
                price_usd=Decimal("279.00"),
            )
        ]
    )


def _comparator(**kwargs: object) -> MagicMock:
    comparator = MagicMock(spec=PriceComparator)
    comparator.compare = AsyncMock(**kwargs)
    return comparator


class TestArgumentHelpers(unittest.TestCase):
    def test_parse_specs(self) -> None:
        self.assertEqual(
            parse_specs(["color=black", " storage = 256GB "]),
            {"color": "black", "storage": "256GB"},
        )

    def test_parse_specs_rejects_bare_word(self) -> None:
        with self.assertRaises(SystemExit):
            parse_specs(["black"])

    def test_build_identifiers_merges_url(self) -> None:
        ids = build_identifiers(
            {"brand": "Apple", "asin": None},
            {"color": "black"},
            "https://www.amazon.com/dp/B0CHX1W1XY",
        )
        self.assertEqual(ids.brand, "Apple")
        self.assertEqual(ids.asin, "B0CHX1W1XY")
        self.assertEqual(ids.specifications, {"color": "black"})


class TestCliCompare(unittest.IsolatedAsyncioTestCase):
    """Exit codes and JSON output."""

    async def test_json_output(self) -> None:
        comparator = _comparator(return_value=_result())
        with patch("sys.stdout", new_callable=StringIO) as out:
            code = await cli_compare(
                "sony xm5", ProductIdentifiers(), None, "json", comparator
            )
        self.assertEqual(code, EXIT_OK)
        payload = json.loads(out.getvalue())
        self.assertEqual(payload["best_deal"]["site"], "eBay")
        self.assertEqual(len(payload["all_prices"]), 1)

    async def test_table_output(self) -> None:
        comparator = _comparator(return_value=_result())
        code = await cli_compare(
            "sony xm5", ProductIdentifiers(), "EUR", "table", comparator
        )
        self.assertEqual(code, EXIT_OK)
        comparator.compare.assert_awaited_once_with(
            "sony xm5", ProductIdentifiers(), "EUR"
        )

    async def test_no_match_exit_code(self) -> None:
        comparator = _comparator(side_effect=NoMatchError("x", 2, 70))
        code = await cli_compare("x", ProductIdentifiers(), None, "json", comparator)
        self.assertEqual(code, EXIT_NO_MATCH)

    async def test_internal_exit_code(self) -> None:
        comparator = _comparator(side_effect=InternalError("bad threshold"))
        code = await cli_compare("x", ProductIdentifiers(), None, "json", comparator)
        self.assertEqual(code, EXIT_INTERNAL)


class TestRunInvalidate(unittest.TestCase):
    def test_removed(self) -> None:
        comparator = MagicMock(spec=PriceComparator)
        comparator.invalidate.return_value = True
        self.assertEqual(run_invalidate("tv", comparator), EXIT_OK)

    def test_cache_down(self) -> None:
        comparator = MagicMock(spec=PriceComparator)
        comparator.invalidate.side_effect = CacheError("refused")
        self.assertEqual(run_invalidate("tv", comparator), EXIT_INTERNAL)


if __name__ == "__main__":
    unittest.main()
