import asyncio
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional, Set

import pytest
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from app.domain.models import (
    FetchResult,
    LatestEarnings,
    Position,
    PriceSnapshot,
    QuoteFundamentals,
    SecondaryFundamentals,
)
from app.domain.services.portfolio_aggregator import PortfolioAggregator
from app.infrastructure.cache.memory_cache import MemoryTTLCache
from app.services.portfolio_service import PortfolioService

FIXED_TIMESTAMP = "2026-02-04T10:00:00+05:30"


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeQuoteProvider:
    """In-memory quote provider; unknown symbols fail, `raises` symbols raise."""

    name = "yahoo"

    def __init__(self):
        self.quotes: Dict[str, QuoteFundamentals] = {}
        self.raises: Set[str] = set()
        self.delay: float = 0.0
        self.calls = []

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[QuoteFundamentals]:
        self.calls.append(symbol)
        if self.delay:
            await asyncio.sleep(self.delay)
        if symbol in self.raises:
            raise RuntimeError(f"boom {symbol}")
        quote = self.quotes.get(symbol)
        if quote is None:
            return FetchResult.failure(self.name, symbol, "not found")
        return FetchResult.success(quote)

    async def fetch_price_snapshot(self, symbol: str) -> FetchResult[PriceSnapshot]:
        result = await self.fetch_symbol_data(symbol)
        if not result.ok:
            return FetchResult(error=result.error)
        quote = result.value
        return FetchResult.success(
            PriceSnapshot(
                symbol=symbol,
                current_price=quote.current_price,
                change=quote.day_change,
                change_percent=quote.day_change_percent,
                volume=quote.volume,
                market_cap=quote.market_cap,
                last_updated=FIXED_TIMESTAMP,
            )
        )

    async def search(self, query: str, limit: int = 10):
        return [{"symbol": "TCS.NS", "short_name": "TCS", "long_name": None, "exchange": "NSE", "type": "Equity"}]


class FakeFundamentalsProvider:
    name = "google"

    def __init__(self):
        self.fundamentals: Dict[str, SecondaryFundamentals] = {}
        self.calls = []

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[SecondaryFundamentals]:
        self.calls.append(symbol)
        data = self.fundamentals.get(symbol)
        if data is None:
            return FetchResult.failure(self.name, symbol, "no fundamentals in markup")
        return FetchResult.success(data)

    async def close(self) -> None:
        return None


def build_quote(symbol: str, price: str, **overrides) -> QuoteFundamentals:
    fields = dict(
        symbol=symbol,
        current_price=Decimal(price),
        day_change=Decimal("0"),
        day_change_percent=Decimal("0"),
        volume=1000,
        latest_earnings=LatestEarnings(date="2026-01-20T16:00:00+05:30", eps=Decimal("42.5")),
    )
    fields.update(overrides)
    return QuoteFundamentals(**fields)


def build_position(symbol: str, price: str, quantity: int, sector: Optional[str] = "Tech") -> Position:
    return Position(
        symbol=symbol,
        display_name=symbol.split(".")[0].title(),
        purchase_price=Decimal(price),
        quantity=quantity,
        sector=sector,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def quote_provider() -> FakeQuoteProvider:
    return FakeQuoteProvider()


@pytest.fixture
def fundamentals_provider() -> FakeFundamentalsProvider:
    return FakeFundamentalsProvider()


@pytest.fixture
def positions():
    return [
        build_position("TCS.NS", "3000", 10, "Tech"),
        build_position("INFY.NS", "1500", 20, "Tech"),
        build_position("RELIANCE.NS", "2500", 12, "Energy"),
    ]


@pytest.fixture
def aggregator(quote_provider, fundamentals_provider) -> PortfolioAggregator:
    return PortfolioAggregator(quote_provider, fundamentals_provider, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def cache(clock) -> MemoryTTLCache:
    return MemoryTTLCache(clock=clock)


@pytest.fixture
def service(positions, aggregator, cache) -> PortfolioService:
    return PortfolioService(positions_source=lambda: positions, aggregator=aggregator, cache=cache)


@pytest.fixture
def app(service) -> FastAPI:
    from app.main import create_app

    app = create_app()
    app.state.portfolio_service = service
    return app


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_quote():
    return build_quote


@pytest.fixture
def make_position():
    return build_position


@pytest.fixture
def fixed_timestamp() -> str:
    return FIXED_TIMESTAMP
