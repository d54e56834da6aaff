# price_compare/services/currency_service.py

"""Currency detection, price parsing and exchange-rate conversion.

All amounts are :class:`decimal.Decimal`.  Rates are expressed as units
of a currency per one unit of the base currency (USD), so converting
divides by the source rate and multiplies by the target rate.
"""

import json
import logging
import re
import threading
import time
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.errors import NetworkError, ParseError, PriceCheckError
from price_compare.models.exchange_rates import ExchangeRateSet
from price_compare.services.retry_policy import RetryPolicy
from price_compare.storage.memory_backend import KeyValueBackend

logger = logging.getLogger("price_compare.currency")

# code -> (symbol, name)
SUPPORTED_CURRENCIES: dict[str, tuple[str, str]] = {
    "USD": ("$", "US Dollar"),
    "EUR": ("€", "Euro"),
    "GBP": ("£", "British Pound"),
    "NGN": ("₦", "Nigerian Naira"),
    "INR": ("₹", "Indian Rupee"),
    "CAD": ("C$", "Canadian Dollar"),
    "AUD": ("A$", "Australian Dollar"),
    "JPY": ("¥", "Japanese Yen"),
    "AED": ("AED ", "UAE Dirham"),
}

# Units per USD, used only when the rate API is unavailable.
FALLBACK_RATES: dict[str, Decimal] = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.9259"),
    "GBP": Decimal("0.7874"),
    "NGN": Decimal("769.23"),
    "INR": Decimal("83.33"),
    "CAD": Decimal("1.3514"),
    "AUD": Decimal("1.5152"),
    "JPY": Decimal("149.25"),
    "AED": Decimal("3.6725"),
}

# Multi-character symbols must precede the bare "$".
_SYMBOLS: list[tuple[str, str]] = [
    ("C$", "CAD"),
    ("A$", "AUD"),
    ("$", "USD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("₦", "NGN"),
    ("₹", "INR"),
    ("¥", "JPY"),
]

_ISO_CODES: list[str] = [
    "USD", "EUR", "GBP", "NGN", "INR", "CAD", "AUD", "JPY", "AED",
]

# Storefront substring -> currency, checked in order.
_SITE_HINTS: list[tuple[str, str]] = [
    ("jumia", "NGN"),
    ("konga", "NGN"),
    ("amazon.co.uk", "GBP"),
    ("ebay.co.uk", "GBP"),
    ("amazon.de", "EUR"),
    ("amazon.fr", "EUR"),
    ("amazon.ca", "CAD"),
    ("amazon.com.au", "AUD"),
    ("amazon.in", "INR"),
    ("amazon.co.jp", "JPY"),
    ("amazon.ae", "AED"),
    ("noon", "AED"),
]

# A leading "." belongs to the number unless it ends a word like "Rs."
_NUMBER_RUN_RE = re.compile(r"(?:(?<![A-Za-z])\.)?\d[\d.,]*")


def detect_currency(price_text: str, site_hint: str | None = None) -> str:
    """Guess the ISO code for a price string.

    Symbol first, then an ISO code substring, then the storefront hint,
    then USD.
    """
    for symbol, code in _SYMBOLS:
        if symbol in price_text:
            return code

    upper = price_text.upper()
    for code in _ISO_CODES:
        if code in upper:
            return code

    if site_hint:
        hint = site_hint.lower()
        for needle, code in _SITE_HINTS:
            if needle in hint:
                return code

    return "USD"


def _normalise_number(raw: str) -> str:
    """Turn '1,299.99' / '1.299,99' / '50,000' into a Decimal literal."""
    raw = raw.rstrip(".,")
    has_dot = "." in raw
    has_comma = "," in raw

    if has_dot and has_comma:
        if raw.rfind(",") > raw.rfind("."):
            return raw.replace(".", "").replace(",", ".")
        return raw.replace(",", "")

    if has_comma:
        head, _, tail = raw.rpartition(",")
        if raw.count(",") == 1 and len(tail) == 2:
            return f"{head}.{tail}"
        return raw.replace(",", "")

    if raw.count(".") > 1:
        return raw.replace(".", "")

    return raw


def parse_price(
    price_text: str, site_hint: str | None = None,
) -> tuple[Decimal, str]:
    """Parse a display price into ``(amount, currency_code)``.

    Raises:
        ParseError: if the text carries no digits or no valid number.
    """
    currency = detect_currency(price_text, site_hint)

    match = _NUMBER_RUN_RE.search(price_text)
    if match is None:
        raise ParseError(f"No numeric value found in price: {price_text!r}")

    normalised = _normalise_number(match.group(0))
    try:
        amount = Decimal(normalised)
    except InvalidOperation as exc:
        raise ParseError(
            f"Invalid price format: {price_text!r}"
        ) from exc

    return amount, currency


def format_amount(amount: Decimal, code: str) -> str:
    """Render an amount with its currency symbol, two decimal places."""
    symbol = SUPPORTED_CURRENCIES.get(code, (f"{code} ", ""))[0]
    return f"{symbol}{amount.quantize(Decimal('0.01')):,}"


def fallback_rate_set() -> ExchangeRateSet:
    """Rates synthesised from the static table."""
    return ExchangeRateSet(
        base="USD",
        rates=dict(FALLBACK_RATES),
        captured_at=datetime.now(timezone.utc),
        source="fallback",
    )


class CurrencyService:
    """Owns the shared exchange-rate slot and performs conversions.

    Lookup order for rates: in-process slot, cache backend, remote API.
    Any API trouble degrades to :data:`FALLBACK_RATES`; currency
    unavailability never fails a comparison.
    """

    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        session: curl_requests.Session | None = None,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = Settings()
        self.backend = backend
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.api_url = self.settings.EXCHANGE_RATE_API_URL
        self.cache_key = self.settings.EXCHANGE_RATE_CACHE_KEY
        self.ttl_seconds = self.settings.EXCHANGE_RATE_CACHE_TTL_HOURS * 3600
        self._clock = clock
        self._lock = threading.Lock()
        self._rates: ExchangeRateSet | None = None
        self._rates_expire_at: float = 0.0

    # ── Rate retrieval ───────────────────────────────────

    def current_rates(self) -> ExchangeRateSet:
        """Return the current rate set, refreshing it when stale."""
        with self._lock:
            if self._rates is not None and self._clock() < self._rates_expire_at:
                return self._rates

        rates = self._read_backend()
        if rates is None:
            rates = self._fetch_remote()

        ttl = (
            self.ttl_seconds if rates.source == "api"
            else self.settings.FALLBACK_RATES_RETRY_SECONDS
        )
        with self._lock:
            self._rates = rates
            self._rates_expire_at = self._clock() + ttl
        return rates

    def _read_backend(self) -> ExchangeRateSet | None:
        if self.backend is None:
            return None
        try:
            payload = self.backend.get(self.cache_key)
        except Exception as exc:
            logger.warning("Exchange rate cache read failed: %s", exc)
            return None
        if payload is None:
            return None
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            rates = ExchangeRateSet.from_json(payload)
        except (ValueError, KeyError, InvalidOperation) as exc:
            logger.warning("Ignoring corrupt cached exchange rates: %s", exc)
            return None
        logger.debug("Using cached exchange rates from %s", rates.captured_at)
        return rates

    def _write_backend(self, rates: ExchangeRateSet) -> None:
        if self.backend is None:
            return
        try:
            self.backend.setex(self.cache_key, self.ttl_seconds, rates.to_json())
        except Exception as exc:
            logger.warning("Failed to cache exchange rates: %s", exc)

    def _fetch_remote(self) -> ExchangeRateSet:
        logger.info("Fetching fresh exchange rates from %s", self.api_url)
        try:
            resp = self.retry_policy.execute(
                lambda: self.session.get(
                    self.api_url, timeout=self.settings.REQUEST_TIMEOUT
                ),
                label="exchange rate API",
            )
            rates = self._parse_payload(resp.text)
        except (NetworkError, ParseError) as exc:
            logger.warning("%s, using fallback rates", exc)
            return fallback_rate_set()

        self._write_backend(rates)
        return rates

    @staticmethod
    def _parse_payload(text: str) -> ExchangeRateSet:
        try:
            data: Any = json.loads(text)
        except ValueError as exc:
            raise ParseError(f"Exchange rate payload is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseError("Exchange rate payload is not an object")

        raw_rates = data.get("rates", data.get("conversion_rates"))
        result = data.get("result", "success")
        if result != "success":
            raise ParseError(f"Exchange rate API result: {result}")
        if not isinstance(raw_rates, dict) or not raw_rates:
            raise ParseError("Exchange rate payload has no rates")

        rates: dict[str, Decimal] = {}
        for code, value in raw_rates.items():
            try:
                rate = Decimal(str(value))
            except InvalidOperation:
                continue
            if rate > 0:
                rates[str(code).upper()] = rate

        base = str(data.get("base", data.get("base_code", "USD"))).upper()
        return ExchangeRateSet(
            base=base,
            rates=rates,
            captured_at=datetime.now(timezone.utc),
            source="api",
        )

    # ── Conversion ───────────────────────────────────────

    def _rate(self, rates: ExchangeRateSet, code: str) -> Decimal:
        rate = rates.rate_for(code)
        if rate is None:
            rate = FALLBACK_RATES.get(code)
        if rate is None:
            raise ParseError(f"Unsupported currency: {code}")
        return rate

    def convert(
        self, amount: Decimal, from_code: str, to_code: str,
    ) -> Decimal:
        """Convert *amount* between currencies via the base currency."""
        source = from_code.upper()
        target = to_code.upper()
        if source == target:
            return amount

        rates = self.current_rates()
        return amount / self._rate(rates, source) * self._rate(rates, target)

    def convert_to_usd(self, amount: Decimal, from_code: str) -> Decimal:
        return self.convert(amount, from_code, "USD")

    def safe_convert(
        self, amount: Decimal, from_code: str, to_code: str,
    ) -> Decimal:
        """Like :meth:`convert` but returns *amount* unchanged on failure."""
        try:
            return self.convert(amount, from_code, to_code)
        except PriceCheckError as exc:
            logger.warning(
                "Conversion %s -> %s failed, keeping original amount: %s",
                from_code,
                to_code,
                exc,
            )
            return amount
