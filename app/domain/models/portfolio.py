"""
DOMAIN MODELS — PORTFOLIO & PnL

Immutable structures representing configured positions, enriched holdings,
sector roll-ups and portfolio-wide totals.
No configuration loading. No market data fetching.

Amounts are exact Decimals; rounding to 2 places happens only in to_dict().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from app.domain.models.market_data import ExchangeCode, LatestEarnings
from app.utils.numbers import display

UNCATEGORIZED_SECTOR = "Uncategorized"


@dataclass(frozen=True)
class Position:
    """
    A held quantity of a symbol at a recorded purchase price.
    """
    symbol: str
    display_name: str
    purchase_price: Decimal
    quantity: int
    sector: Optional[str] = None

    @property
    def investment(self) -> Decimal:
        return self.purchase_price * self.quantity


@dataclass(frozen=True)
class EnrichedStock:
    """
    A position merged with upstream market data and derived metrics.
    """
    symbol: str
    display_name: str
    sector: Optional[str]
    purchase_price: Decimal
    quantity: int
    exchange: ExchangeCode
    investment: Decimal
    current_market_price: Decimal
    present_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal
    pe_ratio: Optional[Decimal]
    pb_ratio: Optional[Decimal]
    dividend_yield: Optional[Decimal]
    return_on_equity: Optional[Decimal]
    latest_earnings: LatestEarnings
    day_change: Decimal
    day_change_percent: Decimal
    volume: int
    last_updated: str
    data_available: bool
    portfolio_percent: Decimal = Decimal("0")

    @property
    def sector_name(self) -> str:
        sector = (self.sector or "").strip()
        return sector or UNCATEGORIZED_SECTOR

    def to_dict(self) -> Dict[str, object]:
        return {
            "symbol": self.symbol,
            "display_name": self.display_name,
            "sector": self.sector_name,
            "exchange": self.exchange.value,
            "purchase_price": display(self.purchase_price),
            "quantity": self.quantity,
            "investment": display(self.investment),
            "portfolio_percent": display(self.portfolio_percent),
            "current_market_price": display(self.current_market_price),
            "present_value": display(self.present_value),
            "gain_loss": display(self.gain_loss),
            "gain_loss_percent": display(self.gain_loss_percent),
            "pe_ratio": display(self.pe_ratio),
            "pb_ratio": display(self.pb_ratio),
            "dividend_yield": display(self.dividend_yield),
            "return_on_equity": display(self.return_on_equity),
            "latest_earnings": self.latest_earnings.to_dict(),
            "day_change": display(self.day_change),
            "day_change_percent": display(self.day_change_percent),
            "volume": self.volume,
            "last_updated": self.last_updated,
            "data_available": self.data_available,
        }


@dataclass(frozen=True)
class PortfolioSummary:
    total_stocks: int
    total_investment: Decimal
    total_current_value: Decimal
    total_gain_loss: Decimal
    overall_gain_loss_percent: Decimal

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_stocks": self.total_stocks,
            "total_investment": display(self.total_investment),
            "total_current_value": display(self.total_current_value),
            "total_gain_loss": display(self.total_gain_loss),
            "overall_gain_loss_percent": display(self.overall_gain_loss_percent),
        }


@dataclass(frozen=True)
class PortfolioMetrics:
    """Day-level highlights across the portfolio."""
    total_day_change: Decimal
    top_gainer: Optional[str] = None
    top_loser: Optional[str] = None
    most_active: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_day_change": display(self.total_day_change),
            "top_gainer": self.top_gainer,
            "top_loser": self.top_loser,
            "most_active": self.most_active,
        }


@dataclass(frozen=True)
class SectorSummary:
    sector_name: str
    member_stocks: List[EnrichedStock]
    total_investment: Decimal
    total_present_value: Decimal
    total_gain_loss: Decimal
    gain_loss_percent: Decimal
    portfolio_percent: Decimal

    @property
    def stock_count(self) -> int:
        return len(self.member_stocks)

    def to_dict(self) -> Dict[str, object]:
        return {
            "sector": self.sector_name,
            "stocks": [stock.to_dict() for stock in self.member_stocks],
            "stock_count": self.stock_count,
            "total_investment": display(self.total_investment),
            "total_present_value": display(self.total_present_value),
            "total_gain_loss": display(self.total_gain_loss),
            "gain_loss_percent": display(self.gain_loss_percent),
            "portfolio_percent": display(self.portfolio_percent),
        }


@dataclass(frozen=True)
class SectorSnapshot:
    sectors: List[SectorSummary] = field(default_factory=list)
    summary: Optional[PortfolioSummary] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "sectors": [sector.to_dict() for sector in self.sectors],
            "summary": self.summary.to_dict() if self.summary else None,
        }
