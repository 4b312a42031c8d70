"""
Domain Models Package
Export all domain entities
"""

from .market_data import (
    ExchangeCode,
    FetchError,
    FetchResult,
    LatestEarnings,
    PriceSnapshot,
    QuoteFundamentals,
    SecondaryFundamentals,
)
from .portfolio import (
    UNCATEGORIZED_SECTOR,
    EnrichedStock,
    PortfolioMetrics,
    PortfolioSummary,
    Position,
    SectorSnapshot,
    SectorSummary,
)

__all__ = [
    # Enums
    "ExchangeCode",

    # Upstream data
    "FetchError",
    "FetchResult",
    "LatestEarnings",
    "PriceSnapshot",
    "QuoteFundamentals",
    "SecondaryFundamentals",

    # Portfolio
    "UNCATEGORIZED_SECTOR",
    "EnrichedStock",
    "PortfolioMetrics",
    "PortfolioSummary",
    "Position",
    "SectorSnapshot",
    "SectorSummary",
]
