"""
DOMAIN MODELS — UPSTREAM MARKET DATA

Normalized records produced by the quote provider (Yahoo Finance) and the
secondary fundamentals provider (Google Finance), plus the tagged result
type every provider call returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Generic, Optional, TypeVar

from app.utils.numbers import display

T = TypeVar("T")


class ExchangeCode(str, Enum):
    """Indian stock exchanges"""
    NSE = "NSE"
    BSE = "BSE"


@dataclass(frozen=True)
class LatestEarnings:
    date: Optional[str] = None
    eps: Decimal = Decimal("0")

    def to_dict(self) -> Dict[str, object]:
        return {"date": self.date, "eps": display(self.eps)}


@dataclass(frozen=True)
class QuoteFundamentals:
    """Quote and fundamentals for one symbol from the primary provider."""
    symbol: str
    current_price: Decimal = Decimal("0")
    exchange: ExchangeCode = ExchangeCode.NSE
    pe_ratio: Optional[Decimal] = None
    pb_ratio: Optional[Decimal] = None
    dividend_yield: Optional[Decimal] = None
    return_on_equity: Optional[Decimal] = None
    day_change: Decimal = Decimal("0")
    day_change_percent: Decimal = Decimal("0")
    volume: int = 0
    market_cap: Decimal = Decimal("0")
    latest_earnings: LatestEarnings = field(default_factory=LatestEarnings)
    name: Optional[str] = None
    currency: str = "INR"

    def to_dict(self) -> Dict[str, object]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "exchange": self.exchange.value,
            "currency": self.currency,
            "current_price": display(self.current_price),
            "day_change": display(self.day_change),
            "day_change_percent": display(self.day_change_percent),
            "volume": self.volume,
            "market_cap": display(self.market_cap),
            "pe_ratio": display(self.pe_ratio),
            "pb_ratio": display(self.pb_ratio),
            "dividend_yield": display(self.dividend_yield),
            "return_on_equity": display(self.return_on_equity),
            "latest_earnings": self.latest_earnings.to_dict(),
        }


@dataclass(frozen=True)
class SecondaryFundamentals:
    """Ratios scraped from the secondary provider."""
    symbol: str
    pe_ratio: Optional[Decimal] = None
    pb_ratio: Optional[Decimal] = None
    dividend_yield: Optional[Decimal] = None
    return_on_equity: Optional[Decimal] = None

    def has_any(self) -> bool:
        return any(
            value is not None
            for value in (self.pe_ratio, self.pb_ratio, self.dividend_yield, self.return_on_equity)
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "symbol": self.symbol,
            "pe_ratio": display(self.pe_ratio),
            "pb_ratio": display(self.pb_ratio),
            "dividend_yield": display(self.dividend_yield),
            "return_on_equity": display(self.return_on_equity),
        }


@dataclass(frozen=True)
class PriceSnapshot:
    """Lightweight price record for the bulk price endpoint."""
    symbol: str
    current_price: Decimal
    change: Decimal
    change_percent: Decimal
    volume: int
    market_cap: Decimal
    last_updated: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "symbol": self.symbol,
            "current_price": display(self.current_price),
            "change": display(self.change),
            "change_percent": display(self.change_percent),
            "volume": self.volume,
            "market_cap": display(self.market_cap),
            "last_updated": self.last_updated,
        }


@dataclass(frozen=True)
class FetchError:
    provider: str
    symbol: str
    reason: str

    def __str__(self) -> str:
        return f"{self.provider}:{self.symbol}: {self.reason}"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Tagged outcome of one provider call: exactly one of value/error is set."""
    value: Optional[T] = None
    error: Optional[FetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.value is not None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, provider: str, symbol: str, reason: str) -> "FetchResult[T]":
        return cls(error=FetchError(provider=provider, symbol=symbol, reason=reason))
