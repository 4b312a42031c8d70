"""
POSITION LOADER
Load and validate the configured portfolio positions

RULES:
❌ No defaults for required fields
✅ Fail fast on invalid config (AggregationInputError)
✅ Deterministic output, file order preserved
"""

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from app.domain.errors import AggregationInputError
from app.domain.models import Position


def _parse_position(index: int, data: Any) -> Position:
    if not isinstance(data, dict):
        raise AggregationInputError(f"Position #{index + 1} must be a mapping")

    symbol = str(data.get("symbol") or "").strip().upper()
    if not symbol:
        raise AggregationInputError(f"Position #{index + 1} is missing a symbol")

    try:
        purchase_price = Decimal(str(data["purchase_price"]))
    except (KeyError, InvalidOperation):
        raise AggregationInputError(f"Position {symbol}: purchase_price is missing or not a number")

    quantity = data.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise AggregationInputError(f"Position {symbol}: quantity must be an integer")

    sector = data.get("sector")
    return Position(
        symbol=symbol,
        display_name=str(data.get("name") or data.get("display_name") or symbol),
        purchase_price=purchase_price,
        quantity=quantity,
        sector=str(sector).strip() if sector else None,
    )


def validate_positions(positions: Sequence[Position]) -> None:
    """
    Raise AggregationInputError unless positions is a non-empty sequence of
    well-formed Position objects.
    """
    if not positions:
        raise AggregationInputError("Position list is empty")

    for position in positions:
        if not isinstance(position, Position):
            raise AggregationInputError(f"Not a position: {position!r}")
        if not position.symbol:
            raise AggregationInputError("Position with empty symbol")
        price = position.purchase_price
        if not isinstance(price, Decimal) or not price.is_finite() or price <= 0:
            raise AggregationInputError(f"Position {position.symbol}: purchase_price must be a positive Decimal")
        if isinstance(position.quantity, bool) or not isinstance(position.quantity, int) or position.quantity <= 0:
            raise AggregationInputError(f"Position {position.symbol}: quantity must be positive")


def parse_positions(data: Dict[str, Any]) -> List[Position]:
    entries = (data or {}).get("positions")
    if not isinstance(entries, list):
        raise AggregationInputError("Portfolio config must contain a 'positions' list")

    positions = [_parse_position(i, entry) for i, entry in enumerate(entries)]
    validate_positions(positions)
    return positions


def load_positions(path: Path) -> List[Position]:
    """Load positions from a YAML file"""
    if not path.exists():
        raise AggregationInputError(f"Portfolio config not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise AggregationInputError(f"Portfolio config is not valid YAML: {exc}")

    return parse_positions(data)
