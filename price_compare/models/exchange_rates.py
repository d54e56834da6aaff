# price_compare/models/exchange_rates.py

"""Exchange rate snapshot model."""

import json
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class ExchangeRateSet:
    """Rates expressed as units of each currency per one unit of ``base``."""

    base: str
    rates: dict[str, Decimal]
    captured_at: datetime
    source: str = "api"  # "api" or "fallback"

    def rate_for(self, code: str) -> Decimal | None:
        return self.rates.get(code.upper())

    def to_json(self) -> str:
        return json.dumps(
            {
                "base": self.base,
                "rates": {k: str(v) for k, v in self.rates.items()},
                "captured_at": self.captured_at.isoformat(),
                "source": self.source,
            }
        )

    @classmethod
    def from_json(cls, payload: str) -> "ExchangeRateSet":
        data: dict[str, Any] = json.loads(payload)
        return cls(
            base=data["base"],
            rates={k: Decimal(v) for k, v in data["rates"].items()},
            captured_at=datetime.fromisoformat(data["captured_at"]),
            source=data.get("source", "api"),
        )
