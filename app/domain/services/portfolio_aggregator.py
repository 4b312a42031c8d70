"""
PORTFOLIO AGGREGATOR
Fan out provider fetches per position and roll results up

RESPONSIBILITIES:
- Fetch quote + fundamentals for every position concurrently
- Merge each position through the merge engine
- Normalize portfolio share of present value
- Sector roll-ups, portfolio summary and day metrics

RULES:
❌ One symbol's failure never affects another symbol
❌ Output order never depends on completion order
✅ Every position appears in the output, degraded if needed
"""

import asyncio
import logging
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from app.domain.models import (
    EnrichedStock,
    FetchResult,
    PortfolioMetrics,
    PortfolioSummary,
    Position,
    QuoteFundamentals,
    SecondaryFundamentals,
    SectorSnapshot,
    SectorSummary,
)
from app.domain.services.merge_engine import merge_stock
from app.domain.services.position_loader import validate_positions
from app.infrastructure.market_data.types import FundamentalsProvider, QuoteProvider
from app.utils.numbers import percent_of
from app.utils.time import now_ist_iso

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _settle(outcome: object, provider: str, symbol: str) -> FetchResult:
    """Turn a gather() outcome into a FetchResult; exceptions become failures."""
    if isinstance(outcome, BaseException):
        logger.error("Provider %s raised for %s: %r", provider, symbol, outcome)
        return FetchResult.failure(provider, symbol, f"unexpected error: {outcome!r}")
    if isinstance(outcome, FetchResult):
        return outcome
    return FetchResult.failure(provider, symbol, f"unexpected result type {type(outcome).__name__}")


class PortfolioAggregator:
    """
    Concurrent per-symbol fetch + merge across the position list.
    """

    def __init__(
        self,
        quote_provider: QuoteProvider,
        fundamentals_provider: FundamentalsProvider,
        clock: Callable[[], str] = now_ist_iso,
    ):
        self.quote_provider = quote_provider
        self.fundamentals_provider = fundamentals_provider
        self._clock = clock

    async def fetch_symbol(
        self, symbol: str
    ) -> Tuple[FetchResult[QuoteFundamentals], FetchResult[SecondaryFundamentals]]:
        """Fetch both providers for one symbol concurrently."""
        quote, fundamentals = await asyncio.gather(
            self.quote_provider.fetch_symbol_data(symbol),
            self.fundamentals_provider.fetch_symbol_data(symbol),
            return_exceptions=True,
        )
        return (
            _settle(quote, self.quote_provider.name, symbol),
            _settle(fundamentals, self.fundamentals_provider.name, symbol),
        )

    async def build_portfolio(self, positions: Sequence[Position]) -> List[EnrichedStock]:
        """
        Build enriched stocks in input order with portfolio_percent filled in.

        Raises AggregationInputError for an empty or malformed position list.
        """
        validate_positions(positions)
        logger.info("🔍 Building portfolio for %d positions", len(positions))

        # Two tasks per position: [quote_0, fundamentals_0, quote_1, ...]
        tasks = []
        for position in positions:
            tasks.append(self.quote_provider.fetch_symbol_data(position.symbol))
            tasks.append(self.fundamentals_provider.fetch_symbol_data(position.symbol))
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        last_updated = self._clock()
        stocks: List[EnrichedStock] = []
        for index, position in enumerate(positions):
            quote = _settle(outcomes[2 * index], self.quote_provider.name, position.symbol)
            fundamentals = _settle(outcomes[2 * index + 1], self.fundamentals_provider.name, position.symbol)
            if not quote.ok:
                logger.warning("Live quote missing for %s: %s", position.symbol, quote.error)
            if not fundamentals.ok:
                logger.debug("Fundamentals missing for %s: %s", position.symbol, fundamentals.error)
            stocks.append(merge_stock(position, quote, fundamentals, last_updated))

        stocks = normalize_portfolio(stocks)

        unavailable = [s.symbol for s in stocks if not s.data_available]
        if unavailable:
            logger.warning("Quote data unavailable for %d symbols: %s", len(unavailable), ", ".join(unavailable))
        logger.info("✅ Portfolio built | stocks=%d degraded=%d", len(stocks), len(unavailable))
        return stocks


def normalize_portfolio(stocks: Sequence[EnrichedStock]) -> List[EnrichedStock]:
    """Set each stock's share of total present value (0 when the total is 0)."""
    total_present_value = sum((s.present_value for s in stocks), ZERO)
    return [
        replace(stock, portfolio_percent=percent_of(stock.present_value, total_present_value))
        for stock in stocks
    ]


def summarize(stocks: Sequence[EnrichedStock]) -> PortfolioSummary:
    total_investment = sum((s.investment for s in stocks), ZERO)
    total_current_value = sum((s.present_value for s in stocks), ZERO)
    total_gain_loss = sum((s.gain_loss for s in stocks), ZERO)
    return PortfolioSummary(
        total_stocks=len(stocks),
        total_investment=total_investment,
        total_current_value=total_current_value,
        total_gain_loss=total_gain_loss,
        overall_gain_loss_percent=percent_of(total_gain_loss, total_investment),
    )


def group_by_sector(stocks: Sequence[EnrichedStock]) -> SectorSnapshot:
    """
    Partition stocks by sector in first-seen order.

    A sector's portfolio_percent is its investment over the whole
    portfolio's investment.
    """
    buckets: Dict[str, List[EnrichedStock]] = {}
    for stock in stocks:
        buckets.setdefault(stock.sector_name, []).append(stock)

    portfolio_investment = sum((s.investment for s in stocks), ZERO)

    sectors: List[SectorSummary] = []
    for sector_name, members in buckets.items():
        total_investment = sum((s.investment for s in members), ZERO)
        total_present_value = sum((s.present_value for s in members), ZERO)
        total_gain_loss = sum((s.gain_loss for s in members), ZERO)
        sectors.append(
            SectorSummary(
                sector_name=sector_name,
                member_stocks=list(members),
                total_investment=total_investment,
                total_present_value=total_present_value,
                total_gain_loss=total_gain_loss,
                gain_loss_percent=percent_of(total_gain_loss, total_investment),
                portfolio_percent=percent_of(total_investment, portfolio_investment),
            )
        )

    return SectorSnapshot(sectors=sectors, summary=summarize(stocks))


def calculate_metrics(stocks: Sequence[EnrichedStock]) -> PortfolioMetrics:
    """
    Day change across holdings plus top gainer, top loser and most active.
    Degraded stocks carry no day data and are skipped.
    """
    live = [s for s in stocks if s.data_available]
    total_day_change = sum((s.day_change * s.quantity for s in live), ZERO)

    top_gainer: Optional[EnrichedStock] = max(live, key=lambda s: s.day_change_percent, default=None)
    top_loser: Optional[EnrichedStock] = min(live, key=lambda s: s.day_change_percent, default=None)
    most_active: Optional[EnrichedStock] = max(
        (s for s in live if s.volume > 0), key=lambda s: s.volume, default=None
    )

    return PortfolioMetrics(
        total_day_change=total_day_change,
        top_gainer=top_gainer.symbol if top_gainer else None,
        top_loser=top_loser.symbol if top_loser else None,
        most_active=most_active.symbol if most_active else None,
    )
