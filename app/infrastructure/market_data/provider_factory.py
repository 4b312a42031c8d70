"""
Market data provider factory (config-driven).
"""

from __future__ import annotations

from typing import Optional

from app.config import Settings, settings as default_settings
from app.domain.models import FetchResult, SecondaryFundamentals
from app.infrastructure.market_data.google_finance_provider import GoogleFinanceProvider
from app.infrastructure.market_data.types import FundamentalsProvider, QuoteProvider
from app.infrastructure.market_data.yfinance_provider import YFinanceProvider


class DisabledFundamentalsProvider:
    """Stand-in used when scraping is switched off; every fetch is a miss."""

    name = "google"

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[SecondaryFundamentals]:
        return FetchResult.failure(self.name, symbol, "fundamentals provider disabled")

    async def close(self) -> None:
        return None


def get_quote_provider(config: Optional[Settings] = None) -> QuoteProvider:
    config = config or default_settings
    return YFinanceProvider(timeout_seconds=float(config.QUOTE_PROVIDER_TIMEOUT_SECONDS))


def get_fundamentals_provider(config: Optional[Settings] = None) -> FundamentalsProvider:
    config = config or default_settings
    if not config.FUNDAMENTALS_ENABLED:
        return DisabledFundamentalsProvider()
    return GoogleFinanceProvider(
        base_url=config.GOOGLE_FINANCE_BASE_URL,
        timeout_seconds=float(config.FUNDAMENTALS_PROVIDER_TIMEOUT_SECONDS),
    )
