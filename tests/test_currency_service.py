# tests/test_currency_service.py

"""Tests for price parsing, currency detection and conversion."""

import json
import unittest
from decimal import Decimal
from unittest.mock import MagicMock

from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.errors import ParseError
from price_compare.services.currency_service import (
    FALLBACK_RATES,
    SUPPORTED_CURRENCIES,
    CurrencyService,
    detect_currency,
    fallback_rate_set,
    format_amount,
    parse_price,
)
from price_compare.services.retry_policy import RetryPolicy
from price_compare.storage.memory_backend import MemoryBackend

RATES_PAYLOAD = json.dumps(
    {
        "result": "success",
        "base": "USD",
        "rates": {"USD": 1, "EUR": 0.8, "NGN": 1500, "GBP": 0.75},
    }
)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _response(status: int, text: str) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


class TestParsePrice(unittest.TestCase):
    """Display strings from real storefronts."""

    def test_us_dollars(self) -> None:
        self.assertEqual(parse_price("$1,299.99"), (Decimal("1299.99"), "USD"))

    def test_euro_continental_separators(self) -> None:
        self.assertEqual(parse_price("€1.299,99"), (Decimal("1299.99"), "EUR"))

    def test_naira_thousands(self) -> None:
        self.assertEqual(parse_price("₦50,000"), (Decimal("50000"), "NGN"))

    def test_naira_with_space_and_millions(self) -> None:
        self.assertEqual(
            parse_price("₦ 1,450,000"), (Decimal("1450000"), "NGN")
        )

    def test_decimal_comma(self) -> None:
        self.assertEqual(parse_price("12,50 €"), (Decimal("12.50"), "EUR"))

    def test_multiple_dots_are_thousands(self) -> None:
        self.assertEqual(parse_price("€1.299.000"), (Decimal("1299000"), "EUR"))

    def test_first_number_wins_in_ranges(self) -> None:
        amount, _ = parse_price("$19.99 - $29.99")
        self.assertEqual(amount, Decimal("19.99"))

    def test_leading_decimal_point(self) -> None:
        self.assertEqual(parse_price("$.99"), (Decimal("0.99"), "USD"))

    def test_abbreviation_dot_not_a_decimal_point(self) -> None:
        amount, _ = parse_price("Rs.1,299")
        self.assertEqual(amount, Decimal("1299"))

    def test_iso_code_text(self) -> None:
        self.assertEqual(parse_price("AED 3,499"), (Decimal("3499"), "AED"))

    def test_site_hint_used_without_symbol(self) -> None:
        _, code = parse_price("45,000", "https://www.konga.com")
        self.assertEqual(code, "NGN")

    def test_no_digits_raises(self) -> None:
        with self.assertRaises(ParseError):
            parse_price("Currently unavailable")


class TestDetectCurrency(unittest.TestCase):
    """Symbol precedence and fallbacks."""

    def test_canadian_before_plain_dollar(self) -> None:
        self.assertEqual(detect_currency("C$ 99.00"), "CAD")

    def test_australian(self) -> None:
        self.assertEqual(detect_currency("A$149"), "AUD")

    def test_symbol_beats_hint(self) -> None:
        self.assertEqual(detect_currency("£20", "https://www.jumia.com.ng"), "GBP")

    def test_amazon_uk_hint(self) -> None:
        self.assertEqual(detect_currency("20.00", "https://www.amazon.co.uk"), "GBP")

    def test_default_usd(self) -> None:
        self.assertEqual(detect_currency("20.00"), "USD")


class TestFormatAmount(unittest.TestCase):
    def test_symbol_and_grouping(self) -> None:
        self.assertEqual(format_amount(Decimal("1450000"), "NGN"), "₦1,450,000.00")

    def test_unknown_code_prefix(self) -> None:
        self.assertEqual(format_amount(Decimal("5"), "CHF"), "CHF 5.00")


class TestFallbackRates(unittest.TestCase):
    def test_fallback_set_is_per_usd(self) -> None:
        rates = fallback_rate_set()
        self.assertEqual(rates.base, "USD")
        self.assertEqual(rates.rates["USD"], Decimal("1"))
        self.assertEqual(rates.source, "fallback")

    def test_base_currency_not_configurable(self) -> None:
        self.assertFalse(hasattr(Settings, "BASE_CURRENCY"))


class TestCurrencyService(unittest.TestCase):
    """Rate retrieval, caching and conversion."""

    def _service(
        self,
        *responses: object,
        backend: MemoryBackend | None = None,
        clock: FakeClock | None = None,
    ) -> tuple[CurrencyService, MagicMock]:
        session = MagicMock()
        session.get.side_effect = list(responses)
        service = CurrencyService(
            backend=backend,
            session=session,
            retry_policy=RetryPolicy(max_retries=1, base_delay=0.01),
            clock=clock or FakeClock(),
        )
        return service, session

    def test_same_currency_is_identity(self) -> None:
        service, session = self._service()
        for code in SUPPORTED_CURRENCIES:
            amount = Decimal("123.4567")
            self.assertIs(service.convert(amount, code, code), amount)
        session.get.assert_not_called()

    def test_convert_via_usd(self) -> None:
        service, _ = self._service(_response(200, RATES_PAYLOAD))
        self.assertEqual(
            service.convert(Decimal("3000"), "NGN", "USD"), Decimal("2")
        )
        self.assertEqual(
            service.convert(Decimal("10"), "EUR", "GBP"), Decimal("9.375")
        )

    def test_rates_fetched_once_within_ttl(self) -> None:
        clock = FakeClock()
        service, session = self._service(
            _response(200, RATES_PAYLOAD), clock=clock
        )
        service.convert_to_usd(Decimal("1"), "EUR")
        clock.now += 3600
        service.convert_to_usd(Decimal("1"), "EUR")
        self.assertEqual(session.get.call_count, 1)

    def test_rates_refreshed_after_ttl(self) -> None:
        clock = FakeClock()
        service, session = self._service(
            _response(200, RATES_PAYLOAD),
            _response(200, RATES_PAYLOAD),
            clock=clock,
        )
        service.current_rates()
        clock.now += service.ttl_seconds + 1
        service.current_rates()
        self.assertEqual(session.get.call_count, 2)

    def test_non_success_result_uses_fallback(self) -> None:
        payload = json.dumps({"result": "error", "error-type": "invalid-key"})
        service, _ = self._service(_response(200, payload))
        rates = service.current_rates()
        self.assertEqual(rates.source, "fallback")
        self.assertEqual(rates.rate_for("NGN"), FALLBACK_RATES["NGN"])

    def test_transport_failure_uses_fallback(self) -> None:
        service, session = self._service(
            curl_requests.RequestsError("connection refused"),
            curl_requests.RequestsError("connection refused"),
        )
        rates = service.current_rates()
        self.assertEqual(rates.source, "fallback")
        self.assertEqual(session.get.call_count, 2)

    def test_fallback_retried_sooner_than_live_rates(self) -> None:
        clock = FakeClock()
        service, session = self._service(
            _response(500, ""),
            _response(500, ""),
            _response(200, RATES_PAYLOAD),
            clock=clock,
        )
        self.assertEqual(service.current_rates().source, "fallback")
        clock.now += service.settings.FALLBACK_RATES_RETRY_SECONDS + 1
        self.assertEqual(service.current_rates().source, "api")
        self.assertEqual(session.get.call_count, 3)

    def test_missing_result_field_accepted(self) -> None:
        payload = json.dumps(
            {"base_code": "USD", "conversion_rates": {"USD": 1, "EUR": 0.5}}
        )
        service, _ = self._service(_response(200, payload))
        rates = service.current_rates()
        self.assertEqual(rates.source, "api")
        self.assertEqual(rates.rate_for("EUR"), Decimal("0.5"))

    def test_unknown_live_code_uses_static_rate(self) -> None:
        service, _ = self._service(_response(200, RATES_PAYLOAD))
        self.assertEqual(
            service.convert(Decimal("83.33"), "INR", "USD"), Decimal("1")
        )

    def test_unsupported_code_raises_and_safe_convert_keeps_amount(self) -> None:
        service, _ = self._service(_response(200, RATES_PAYLOAD))
        with self.assertRaises(ParseError):
            service.convert(Decimal("10"), "XYZ", "USD")
        self.assertEqual(
            service.safe_convert(Decimal("10"), "XYZ", "USD"), Decimal("10")
        )

    def test_rates_shared_through_backend(self) -> None:
        backend = MemoryBackend()
        first, first_session = self._service(
            _response(200, RATES_PAYLOAD), backend=backend
        )
        first.current_rates()
        second, second_session = self._service(backend=backend)
        rates = second.current_rates()
        self.assertEqual(rates.rate_for("NGN"), Decimal("1500"))
        second_session.get.assert_not_called()

    def test_corrupt_backend_entry_ignored(self) -> None:
        backend = MemoryBackend()
        backend.setex("exchange_rates:usd", 60, "{not json")
        service, session = self._service(
            _response(200, RATES_PAYLOAD), backend=backend
        )
        self.assertEqual(service.current_rates().source, "api")
        session.get.assert_called_once()


if __name__ == "__main__":
    unittest.main()
