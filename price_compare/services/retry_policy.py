# price_compare/services/retry_policy.py

"""Reusable retry-with-exponential-backoff policy for outbound HTTP."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.errors import NetworkError

logger = logging.getLogger("price_compare.retry")

# Statuses worth another attempt; everything else non-2xx fails at once.
RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry transient failures with ``base_delay * 2**attempt`` sleeps.

    ``max_retries`` counts retries after the first attempt, so a policy
    with ``max_retries=3`` makes at most four calls.
    """

    max_retries: int = 3
    base_delay: float = 1.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_retries=Settings.MAX_RETRIES,
            base_delay=Settings.RETRY_BASE_DELAY,
        )

    def backoff(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1``."""
        return self.base_delay * (2 ** attempt)

    def execute(
        self,
        call: Callable[[], Any],
        label: str,
    ) -> Any:
        """Run *call* until it returns a 2xx response or retries run out.

        *call* must return an object with ``status_code``.  Transport
        exceptions and retryable statuses are retried; other statuses
        raise :class:`NetworkError` immediately.
        """
        last_problem = ""
        for attempt in range(self.max_retries + 1):
            try:
                resp = call()
            except curl_requests.RequestsError as exc:
                last_problem = str(exc)
                logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    label,
                    attempt + 1,
                    exc,
                )
            else:
                status = resp.status_code
                if 200 <= status < 300:
                    return resp
                if status not in RETRYABLE_STATUSES:
                    raise NetworkError(
                        f"{label} returned HTTP {status}", source=label
                    )
                last_problem = f"HTTP {status}"
                logger.warning(
                    "[%s] HTTP %d on attempt %d",
                    label,
                    status,
                    attempt + 1,
                )

            if attempt < self.max_retries:
                delay = self.backoff(attempt)
                logger.info(
                    "[%s] Backing off %.1fs before retry %d",
                    label,
                    delay,
                    attempt + 1,
                )
                time.sleep(delay)

        raise NetworkError(
            f"{label} failed after {self.max_retries} retries: "
            f"{last_problem}",
            source=label,
        )
