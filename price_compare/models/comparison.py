# price_compare/models/comparison.py

"""Ranked comparison result returned to callers and stored in the cache."""

import json
from dataclasses import dataclass, field
from typing import Any

from price_compare.models.quote import ScoredQuote


@dataclass
class ComparisonResult:
    """Quotes ordered by ascending USD price, cheapest first."""

    prices: list[ScoredQuote] = field(
        default_factory=lambda: list[ScoredQuote]()
    )

    @property
    def best_deal(self) -> ScoredQuote | None:
        """The cheapest verified quote, or ``None`` for an empty result."""
        return self.prices[0] if self.prices else None

    @classmethod
    def from_quotes(cls, quotes: list[ScoredQuote]) -> "ComparisonResult":
        """Rank quotes by USD price; ``sorted`` keeps input order on ties."""
        return cls(prices=sorted(quotes, key=lambda q: q.price_usd))

    def to_dict(self) -> dict[str, Any]:
        best = self.best_deal
        return {
            "best_deal": best.to_dict() if best is not None else None,
            "all_prices": [q.to_dict() for q in self.prices],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparisonResult":
        return cls(
            prices=[
                ScoredQuote.from_dict(item)
                for item in data.get("all_prices", [])
            ]
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_json(cls, payload: str) -> "ComparisonResult":
        data: dict[str, Any] = json.loads(payload)
        return cls.from_dict(data)
