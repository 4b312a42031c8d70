"""
YFinance Quote Provider
Async-safe Yahoo Finance integration for Indian equities (NSE/BSE)

Primary source for live price, day change, volume, market cap, valuation
ratios and latest earnings.
"""

import asyncio
import logging
import random
from decimal import Decimal
from typing import Any, Dict, List, Optional

import yfinance as yf

from app.domain.models import (
    ExchangeCode,
    FetchResult,
    LatestEarnings,
    PriceSnapshot,
    QuoteFundamentals,
)
from app.utils.numbers import to_decimal
from app.utils.time import epoch_to_ist_iso, now_ist_iso

logger = logging.getLogger(__name__)

# Keys that only appear in a real quote payload. Unknown tickers come back
# from Yahoo as a near-empty dict without any of them.
_QUOTE_IDENTITY_KEYS = ("symbol", "quoteType", "shortName", "longName")


class YFinanceProvider:
    """
    Yahoo Finance quote/fundamentals provider
    Async-safe via thread offloading
    """

    name = "yahoo"

    def __init__(self, timeout_seconds: float = 10.0, retries: int = 1):
        self.timeout_seconds = timeout_seconds
        self.retries = retries

    # ------------------------------------------------------------------
    # INTERNAL HELPERS
    # ------------------------------------------------------------------

    async def _info(self, symbol: str) -> Dict[str, Any]:
        """
        Async-safe wrapper around yfinance Ticker.info
        """
        ticker = yf.Ticker(symbol)
        return await asyncio.to_thread(lambda: ticker.info)

    async def _info_with_retry(self, symbol: str) -> Dict[str, Any]:
        """
        Retry wrapper around info to handle transient failures.
        """
        last_exc: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            try:
                return await self._info(symbol)
            except Exception as exc:
                last_exc = exc
                if attempt < self.retries:
                    await asyncio.sleep(0.4 * (2 ** attempt) + random.random() * 0.2)
        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _first(info: Dict[str, Any], *keys: str) -> Optional[Decimal]:
        for key in keys:
            value = to_decimal(info.get(key))
            if value is not None:
                return value
        return None

    @staticmethod
    def _as_percent(fraction: Optional[Decimal]) -> Optional[Decimal]:
        return fraction * Decimal("100") if fraction is not None else None

    @classmethod
    def dividend_yield_percent(cls, info: Dict[str, Any]) -> Optional[Decimal]:
        """
        Dividend yield in percent, the unit Google Finance reports.

        trailingAnnualDividendYield is a fraction (0.012); dividendYield is
        already a percent (1.2).
        """
        trailing = cls._first(info, "trailingAnnualDividendYield")
        if trailing is not None:
            return cls._as_percent(trailing)
        return cls._first(info, "dividendYield")

    @staticmethod
    def get_exchange_code(symbol: str, exchange_name: Optional[str]) -> ExchangeCode:
        """
        Map Yahoo's exchange labels to NSE/BSE. Defaults to NSE.
        """
        if symbol.upper().endswith(".BO"):
            return ExchangeCode.BSE
        exchange = (exchange_name or "").upper()
        if "BSE" in exchange or "BOMBAY" in exchange or exchange == "BOM":
            return ExchangeCode.BSE
        return ExchangeCode.NSE

    @staticmethod
    def is_quote_payload(info: object) -> bool:
        if not isinstance(info, dict) or not info:
            return False
        if to_decimal(info.get("currentPrice")) or to_decimal(info.get("regularMarketPrice")):
            return True
        return any(info.get(key) for key in _QUOTE_IDENTITY_KEYS)

    @classmethod
    def normalize_quote(cls, symbol: str, info: Dict[str, Any]) -> QuoteFundamentals:
        """
        Flatten a Yahoo info payload into QuoteFundamentals.
        Absent fields become neutral defaults.
        """
        price = cls._first(info, "currentPrice", "regularMarketPrice") or Decimal("0")
        if price < 0:
            price = Decimal("0")
        previous_close = cls._first(info, "regularMarketPreviousClose", "previousClose")

        day_change = cls._first(info, "regularMarketChange")
        if day_change is None:
            day_change = price - previous_close if price and previous_close else Decimal("0")

        day_change_percent = cls._first(info, "regularMarketChangePercent")
        if day_change_percent is None:
            if previous_close:
                day_change_percent = day_change / previous_close * Decimal("100")
            else:
                day_change_percent = Decimal("0")

        volume = cls._first(info, "regularMarketVolume", "volume")
        exchange_name = info.get("fullExchangeName") or info.get("exchange")

        return QuoteFundamentals(
            symbol=info.get("symbol") or symbol,
            current_price=price,
            exchange=cls.get_exchange_code(symbol, exchange_name),
            pe_ratio=cls._first(info, "trailingPE"),
            pb_ratio=cls._first(info, "priceToBook"),
            dividend_yield=cls.dividend_yield_percent(info),
            return_on_equity=cls._as_percent(cls._first(info, "returnOnEquity")),
            day_change=day_change,
            day_change_percent=day_change_percent,
            volume=int(volume) if volume is not None else 0,
            market_cap=cls._first(info, "marketCap") or Decimal("0"),
            latest_earnings=LatestEarnings(
                date=epoch_to_ist_iso(info.get("earningsTimestamp") or info.get("earningsTimestampStart")),
                eps=cls._first(info, "epsTrailingTwelveMonths", "trailingEps") or Decimal("0"),
            ),
            name=info.get("longName") or info.get("shortName"),
            currency=info.get("currency") or "INR",
        )

    # ------------------------------------------------------------------
    # QUOTE + FUNDAMENTALS
    # ------------------------------------------------------------------

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[QuoteFundamentals]:
        try:
            info = await asyncio.wait_for(self._info_with_retry(symbol), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Yahoo quote timed out for %s after %.1fs", symbol, self.timeout_seconds)
            return FetchResult.failure(self.name, symbol, f"timeout after {self.timeout_seconds}s")
        except Exception as e:
            logger.error(f"Error fetching Yahoo quote for {symbol}: {e}")
            return FetchResult.failure(self.name, symbol, str(e) or type(e).__name__)

        if not self.is_quote_payload(info):
            logger.warning("Malformed Yahoo quote payload for %s", symbol)
            return FetchResult.failure(self.name, symbol, "malformed or empty quote payload")

        try:
            return FetchResult.success(self.normalize_quote(symbol, info))
        except Exception as e:
            logger.error(f"Error normalizing Yahoo quote for {symbol}: {e}")
            return FetchResult.failure(self.name, symbol, f"normalization failed: {e}")

    # ------------------------------------------------------------------
    # BULK PRICES
    # ------------------------------------------------------------------

    async def fetch_price_snapshot(self, symbol: str) -> FetchResult[PriceSnapshot]:
        result = await self.fetch_symbol_data(symbol)
        if not result.ok:
            return FetchResult(error=result.error)

        quote = result.value
        if quote.current_price <= 0:
            return FetchResult.failure(self.name, symbol, "no price in quote payload")

        return FetchResult.success(
            PriceSnapshot(
                symbol=quote.symbol,
                current_price=quote.current_price,
                change=quote.day_change,
                change_percent=quote.day_change_percent,
                volume=quote.volume,
                market_cap=quote.market_cap,
                last_updated=now_ist_iso(),
            )
        )

    # ------------------------------------------------------------------
    # SEARCH
    # ------------------------------------------------------------------

    async def search(self, query: str, limit: int = 10) -> List[Dict[str, Optional[str]]]:
        """
        Search Yahoo for tickers. Returns an empty list on any failure.
        """
        def _search() -> List[Dict[str, Any]]:
            return yf.Search(query, max_results=limit, news_count=0).quotes

        try:
            quotes = await asyncio.wait_for(asyncio.to_thread(_search), timeout=self.timeout_seconds)
        except Exception as e:
            logger.error(f"Stock search failed for '{query}': {e}")
            return []

        return [
            {
                "symbol": quote.get("symbol"),
                "short_name": quote.get("shortname"),
                "long_name": quote.get("longname"),
                "exchange": quote.get("exchDisp"),
                "type": quote.get("typeDisp"),
            }
            for quote in quotes or []
            if quote.get("symbol")
        ]
