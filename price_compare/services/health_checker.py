# price_compare/services/health_checker.py

"""Connectivity checks for the engine's external collaborators."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import redis
from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.storage.memory_backend import KeyValueBackend
from price_compare.storage.result_cache import create_backend

logger = logging.getLogger("price_compare.health")

_HEALTH_TIMEOUT = 10  # seconds per probe
_SLOW_MS = 5000


@dataclass
class HealthResult:
    """Result of a single dependency health check."""

    component: str
    status: str  # "ok", "slow", "down", "skipped"
    latency_ms: float
    message: str


def _http_probe(
    component: str,
    session: curl_requests.Session,
    url: str,
    params: dict[str, str] | None = None,
) -> HealthResult:
    start = time.monotonic()
    try:
        resp = session.get(
            url,
            params=params,
            headers=Settings.DEFAULT_HEADERS,
            timeout=_HEALTH_TIMEOUT,
        )
    except curl_requests.RequestsError as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(component, "down", elapsed_ms, str(exc)[:80])

    elapsed_ms = (time.monotonic() - start) * 1000
    if resp.status_code != 200:
        return HealthResult(
            component, "down", elapsed_ms, f"HTTP {resp.status_code}"
        )
    if elapsed_ms > _SLOW_MS:
        return HealthResult(component, "slow", elapsed_ms, "High latency")
    return HealthResult(component, "ok", elapsed_ms, "")


def probe_transport(session: curl_requests.Session) -> HealthResult:
    """Render a trivial page through the scraping provider."""
    if not Settings.SCRAPER_API_KEY:
        return HealthResult(
            "scraper_api", "skipped", 0.0, "SCRAPER_API_KEY not set"
        )
    return _http_probe(
        "scraper_api",
        session,
        Settings.SCRAPER_API_URL,
        params={
            "apikey": Settings.SCRAPER_API_KEY,
            "url": "https://httpbin.io/anything",
        },
    )


def probe_rate_api(session: curl_requests.Session) -> HealthResult:
    return _http_probe(
        "exchange_rates", session, Settings.EXCHANGE_RATE_API_URL
    )


def probe_cache(backend: KeyValueBackend) -> HealthResult:
    """Round-trip a sentinel key through the cache backend."""
    start = time.monotonic()
    key = f"{Settings.CACHE_KEY_PREFIX}health"
    try:
        backend.setex(key, 10, "1")
        value = backend.get(key)
        backend.delete(key)
    except redis.exceptions.RedisError as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult("cache", "down", elapsed_ms, str(exc)[:80])

    elapsed_ms = (time.monotonic() - start) * 1000
    if value is None:
        return HealthResult("cache", "down", elapsed_ms, "Write not readable")
    kind = "redis" if Settings.REDIS_URL else "memory"
    return HealthResult("cache", "ok", elapsed_ms, kind)


class HealthChecker:
    """Runs concurrent probes against the transport, rate API and cache."""

    def __init__(
        self,
        session: curl_requests.Session | None = None,
        backend: KeyValueBackend | None = None,
    ) -> None:
        self.session = session or curl_requests.Session(
            impersonate=Settings.IMPERSONATE_BROWSER
        )
        self.backend = backend if backend is not None else create_backend()

    def _probes(self) -> list[Callable[[], HealthResult]]:
        return [
            lambda: probe_transport(self.session),
            lambda: probe_rate_api(self.session),
            lambda: probe_cache(self.backend),
        ]

    async def check_all(self) -> list[HealthResult]:
        """Probe every dependency concurrently."""
        tasks = [asyncio.to_thread(probe) for probe in self._probes()]
        results: list[HealthResult] = list(await asyncio.gather(*tasks))
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.component,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
