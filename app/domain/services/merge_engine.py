"""
MERGE & DERIVE ENGINE
Combine a configured position with both providers' results

RESPONSIBILITIES:
- Apply field precedence between the quote provider and the fundamentals provider
- Derive investment, present value and gain/loss with exact Decimal math
- Degrade missing upstream data to neutral defaults

RULES:
❌ Never raises on upstream failure
❌ No rounding of intermediates
✅ Ratio fallback is decided per field, never per source
✅ data_available is driven by the quote provider alone
"""

from decimal import Decimal
from typing import Optional, TypeVar

from app.domain.models import (
    EnrichedStock,
    ExchangeCode,
    FetchResult,
    LatestEarnings,
    Position,
    QuoteFundamentals,
    SecondaryFundamentals,
)
from app.utils.numbers import percent_of
from app.utils.time import now_ist_iso

V = TypeVar("V")


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return value == 0
    return False


def prefer_non_empty(primary: Optional[V], secondary: Optional[V], sentinel: Optional[V] = None) -> Optional[V]:
    """
    Return primary unless it is missing or zero, then secondary under the
    same rule, then sentinel.
    """
    if not _is_empty(primary):
        return primary
    if not _is_empty(secondary):
        return secondary
    return sentinel


def merge_stock(
    position: Position,
    quote: FetchResult[QuoteFundamentals],
    fundamentals: FetchResult[SecondaryFundamentals],
    last_updated: Optional[str] = None,
) -> EnrichedStock:
    """
    Build an EnrichedStock from a position and the two provider results.
    """
    a = quote.value if quote.ok else None
    b = fundamentals.value if fundamentals.ok else None

    if a is not None and a.current_price > 0:
        current_price = a.current_price
    else:
        current_price = position.purchase_price

    investment = position.purchase_price * position.quantity
    present_value = current_price * position.quantity
    gain_loss = present_value - investment
    gain_loss_percent = percent_of(gain_loss, investment)

    return EnrichedStock(
        symbol=position.symbol,
        display_name=position.display_name,
        sector=position.sector,
        purchase_price=position.purchase_price,
        quantity=position.quantity,
        exchange=a.exchange if a is not None else _exchange_from_symbol(position.symbol),
        investment=investment,
        current_market_price=current_price,
        present_value=present_value,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
        pe_ratio=prefer_non_empty(a and a.pe_ratio, b and b.pe_ratio),
        pb_ratio=prefer_non_empty(a and a.pb_ratio, b and b.pb_ratio),
        dividend_yield=prefer_non_empty(a and a.dividend_yield, b and b.dividend_yield),
        return_on_equity=prefer_non_empty(a and a.return_on_equity, b and b.return_on_equity),
        latest_earnings=a.latest_earnings if a is not None else LatestEarnings(),
        day_change=a.day_change if a is not None else Decimal("0"),
        day_change_percent=a.day_change_percent if a is not None else Decimal("0"),
        volume=a.volume if a is not None else 0,
        last_updated=last_updated or now_ist_iso(),
        data_available=a is not None,
    )


def _exchange_from_symbol(symbol: str) -> ExchangeCode:
    if symbol.upper().endswith(".BO"):
        return ExchangeCode.BSE
    return ExchangeCode.NSE
