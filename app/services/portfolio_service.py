# app/services/portfolio_service.py

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from app.config import Settings, settings as default_settings
from app.domain.errors import InvalidRequestError, InvalidSymbolError
from app.domain.models import EnrichedStock, Position
from app.domain.services.merge_engine import merge_stock, prefer_non_empty
from app.domain.services.portfolio_aggregator import (
    PortfolioAggregator,
    calculate_metrics,
    group_by_sector,
    summarize,
)
from app.infrastructure.cache.types import CacheBackend
from app.utils.numbers import display
from app.utils.single_flight import SingleFlight
from app.utils.time import now_ist_iso

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Z0-9&-]+(\.[A-Z]{2})?$")


class CacheKeys:
    PORTFOLIO = "portfolio"
    SECTORS = "sectors"
    PRICES = "prices:"
    DETAIL = "detail:"


def validate_symbol(symbol: str) -> str:
    """Upper-case and check a ticker such as RELIANCE.NS or M&M.NS"""
    clean = (symbol or "").strip().upper()
    if not SYMBOL_PATTERN.match(clean):
        raise InvalidSymbolError(f"Invalid stock symbol format: {symbol!r}")
    return clean


class PortfolioService:
    """
    Cache-aside entry points consumed by the HTTP layer.

    Concurrent misses for one key share a single computation, and concurrent
    portfolio/sector rebuilds share a single aggregation pass.
    """

    def __init__(
        self,
        positions_source: Callable[[], Sequence[Position]],
        aggregator: PortfolioAggregator,
        cache: Optional[CacheBackend] = None,
        config: Optional[Settings] = None,
    ):
        self._positions_source = positions_source
        self.aggregator = aggregator
        self.cache = cache
        self.config = config or default_settings
        self._flights = SingleFlight()

    # ------------------------------------------------------------
    # Cache plumbing (cache failure is never fatal)
    # ------------------------------------------------------------
    async def _cache_get(self, key: str) -> Optional[Any]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except Exception as exc:
            logger.warning("Cache read failed for %s, recomputing: %s", key, exc)
            return None

    async def _cache_set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, ttl_seconds)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def _cached(self, key: str, ttl_seconds: int, compute: Callable[[], Awaitable[Any]]) -> Any:
        cached = await self._cache_get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            return cached

        async def compute_and_store() -> Any:
            value = await compute()
            await self._cache_set(key, value, ttl_seconds)
            return value

        return await self._flights.do(key, compute_and_store)

    async def _build_stocks(self) -> List[EnrichedStock]:
        positions = list(self._positions_source())
        return await self._flights.do("build", lambda: self.aggregator.build_portfolio(positions))

    # ------------------------------------------------------------
    # Portfolio
    # ------------------------------------------------------------
    async def get_portfolio_snapshot(self) -> Dict[str, Any]:
        async def compute() -> Dict[str, Any]:
            logger.info("Fetching fresh portfolio data...")
            stocks = await self._build_stocks()
            snapshot = {
                "stocks": [stock.to_dict() for stock in stocks],
                "summary": summarize(stocks).to_dict(),
                "metrics": calculate_metrics(stocks).to_dict(),
            }
            logger.info(
                "✅ Portfolio snapshot ready | stocks=%d invested=%.2f value=%.2f",
                len(stocks),
                snapshot["summary"]["total_investment"],
                snapshot["summary"]["total_current_value"],
            )
            return snapshot

        return await self._cached(CacheKeys.PORTFOLIO, self.config.CACHE_TTL_PORTFOLIO, compute)

    async def get_sector_snapshot(self) -> Dict[str, Any]:
        async def compute() -> Dict[str, Any]:
            logger.info("Calculating sector summary...")
            stocks = await self._build_stocks()
            snapshot = group_by_sector(stocks)
            logger.info("Sector summary calculated for %d sectors", len(snapshot.sectors))
            return snapshot.to_dict()

        return await self._cached(CacheKeys.SECTORS, self.config.CACHE_TTL_SECTORS, compute)

    # ------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------
    def normalize_symbols(self, symbols: Sequence[str]) -> List[str]:
        cleaned: List[str] = []
        for raw in symbols:
            for part in (raw or "").split(","):
                if part.strip():
                    symbol = validate_symbol(part)
                    if symbol not in cleaned:
                        cleaned.append(symbol)

        if not cleaned:
            raise InvalidRequestError("Stock symbols are required")
        if len(cleaned) > self.config.MAX_BULK_SYMBOLS:
            raise InvalidRequestError(
                f"At most {self.config.MAX_BULK_SYMBOLS} symbols per request, got {len(cleaned)}"
            )
        return cleaned

    async def get_bulk_prices(self, symbols: Sequence[str]) -> Dict[str, Any]:
        """
        Best-effort price snapshot. Failed symbols are left out of `prices`
        and named in `missing`.
        """
        cleaned = self.normalize_symbols(symbols)

        async def compute() -> Dict[str, Any]:
            results = await asyncio.gather(
                *(self.aggregator.quote_provider.fetch_price_snapshot(s) for s in cleaned),
                return_exceptions=True,
            )
            prices: List[Dict[str, Any]] = []
            missing: List[str] = []
            for symbol, result in zip(cleaned, results):
                if isinstance(result, BaseException) or not result.ok:
                    logger.warning("Price unavailable for %s", symbol)
                    missing.append(symbol)
                    continue
                prices.append(result.value.to_dict())
            return {"prices": prices, "missing": missing}

        key = f"{CacheKeys.PRICES}{','.join(sorted(cleaned))}"
        return await self._cached(key, self.config.CACHE_TTL_PRICES, compute)

    # ------------------------------------------------------------
    # Single stock
    # ------------------------------------------------------------
    async def get_stock_detail(self, symbol: str) -> Dict[str, Any]:
        symbol = validate_symbol(symbol)

        async def compute() -> Dict[str, Any]:
            quote, fundamentals = await self.aggregator.fetch_symbol(symbol)
            a = quote.value if quote.ok else None
            b = fundamentals.value if fundamentals.ok else None

            detail: Dict[str, Any] = {
                "symbol": symbol,
                "name": a.name if a else None,
                "exchange": a.exchange.value if a else None,
                "current_price": display(a.current_price) if a else None,
                "pe_ratio": display(prefer_non_empty(a and a.pe_ratio, b and b.pe_ratio)),
                "pb_ratio": display(prefer_non_empty(a and a.pb_ratio, b and b.pb_ratio)),
                "dividend_yield": display(prefer_non_empty(a and a.dividend_yield, b and b.dividend_yield)),
                "return_on_equity": display(prefer_non_empty(a and a.return_on_equity, b and b.return_on_equity)),
                "latest_earnings": a.latest_earnings.to_dict() if a else {"date": None, "eps": 0.0},
                "quote": a.to_dict() if a else None,
                "fundamentals": b.to_dict() if b else None,
                "errors": [str(r.error) for r in (quote, fundamentals) if r.error is not None],
                "data_available": a is not None,
                "holding": None,
                "last_updated": now_ist_iso(),
            }

            position = self._find_position(symbol)
            if position is not None:
                detail["holding"] = merge_stock(position, quote, fundamentals).to_dict()
            return detail

        return await self._cached(f"{CacheKeys.DETAIL}{symbol}", self.config.CACHE_TTL_STOCK_DETAIL, compute)

    def _find_position(self, symbol: str) -> Optional[Position]:
        try:
            positions = self._positions_source()
        except Exception as exc:
            logger.debug("Positions unavailable for detail lookup: %s", exc)
            return None
        for position in positions:
            if position.symbol == symbol:
                return position
        return None

    async def search_stocks(self, query: str) -> List[Dict[str, Optional[str]]]:
        query = (query or "").strip()
        if len(query) < 2:
            raise InvalidRequestError("Search query must be at least 2 characters")
        return await self.aggregator.quote_provider.search(query)

    # ------------------------------------------------------------
    # Cache admin
    # ------------------------------------------------------------
    async def cache_stats(self) -> Dict[str, object]:
        if self.cache is None:
            return {"backend": None, "enabled": False}
        stats = await self.cache.stats()
        return {**stats, "enabled": True}

    async def flush_cache(self) -> None:
        if self.cache is None:
            return
        await self.cache.flush_all()
        logger.info("Cache flushed")
