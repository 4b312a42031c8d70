"""
Market data provider protocols for type hints.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from app.domain.models import (
    FetchResult,
    PriceSnapshot,
    QuoteFundamentals,
    SecondaryFundamentals,
)


class QuoteProvider(Protocol):
    name: str

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[QuoteFundamentals]:
        ...

    async def fetch_price_snapshot(self, symbol: str) -> FetchResult[PriceSnapshot]:
        ...

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Optional[str]]]:
        ...


class FundamentalsProvider(Protocol):
    name: str

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[SecondaryFundamentals]:
        ...

    async def close(self) -> None:
        ...
