"""
Google Finance Fundamentals Provider
Scrapes P/E, P/B, dividend yield and return on equity from the Google Finance
quote page.

Less reliable than the quote provider; used to fill ratios it leaves empty.
"""

import asyncio
import logging
import re
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

import httpx
from bs4 import BeautifulSoup

from app.domain.models import FetchResult, SecondaryFundamentals
from app.utils.numbers import to_decimal

logger = logging.getLogger(__name__)

_EMPTY_MARKERS = {"", "—", "-", "N/A", "n/a"}
_CURRENCY_RE = re.compile(r"[₹$€£¥,\s]")
_MULTIPLIERS = {
    "K": Decimal("1000"),
    "M": Decimal("1000000"),
    "B": Decimal("1000000000"),
    "T": Decimal("1000000000000"),
}


def parse_numeric_value(text: Optional[str]) -> Optional[Decimal]:
    """
    Parse a Google Finance stat value.

    Handles percentages, currency symbols, thousands separators and
    K/M/B/T suffixes. Returns None for placeholders or garbage.
    """
    if text is None:
        return None
    # Google renders negatives with U+2212
    text = text.strip().replace("−", "-")
    if text in _EMPTY_MARKERS:
        return None

    if "%" in text:
        return to_decimal(_CURRENCY_RE.sub("", text.replace("%", "")))

    clean = _CURRENCY_RE.sub("", text)
    suffix = clean[-1:].upper()
    if suffix in _MULTIPLIERS:
        base = to_decimal(clean[:-1])
        return base * _MULTIPLIERS[suffix] if base is not None else None

    return to_decimal(clean)


class GoogleFinanceProvider:
    """
    Google Finance markup scraper
    """

    name = "google"

    BASE_URL = "https://www.google.com/finance/quote/"

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # field -> labels Google has used for it
    METRIC_LABELS: Dict[str, Tuple[str, ...]] = {
        "pe_ratio": ("PE ratio", "P/E ratio", "Price-to-earnings"),
        "pb_ratio": ("PB ratio", "Price/Book", "Price-to-book"),
        "dividend_yield": ("Dividend yield",),
        "return_on_equity": ("Return on equity", "ROE"),
    }

    def __init__(self, base_url: Optional[str] = None, timeout_seconds: float = 15.0):
        self.base_url = base_url or self.BASE_URL
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout_seconds = timeout_seconds
        self.session: Optional[httpx.AsyncClient] = None

    async def _get_session(self) -> httpx.AsyncClient:
        """Get or create HTTP session"""
        if self.session is None:
            self.session = httpx.AsyncClient(
                headers=self.HEADERS,
                timeout=self.timeout_seconds,
                follow_redirects=True,
            )
        return self.session

    async def close(self) -> None:
        """Close HTTP session"""
        if self.session:
            await self.session.aclose()
            self.session = None

    @staticmethod
    def to_google_symbol(symbol: str) -> str:
        """Convert RELIANCE.NS / RELIANCE.BO to RELIANCE:NSE"""
        clean = symbol.upper()
        for suffix in (".NS", ".BO"):
            if clean.endswith(suffix):
                clean = clean[: -len(suffix)]
        return f"{clean}:NSE"

    # ------------------------------------------------------------------
    # PARSING
    # ------------------------------------------------------------------

    @staticmethod
    def _stat_rows(soup: BeautifulSoup) -> Dict[str, str]:
        """Collect label -> value text from the key stats panel."""
        rows: Dict[str, str] = {}
        for row in soup.select(".gyFHrc"):
            label_el = row.select_one(".mfs7Fc")
            value_el = row.select_one(".P6K39c")
            if label_el is None or value_el is None:
                continue
            label = label_el.get_text(" ", strip=True)
            if label:
                rows[label.lower()] = value_el.get_text(" ", strip=True)
        return rows

    @staticmethod
    def _extract_metric(soup: BeautifulSoup, rows: Dict[str, str], labels: Iterable[str]) -> Optional[Decimal]:
        for label in labels:
            element = soup.select_one(f'[data-test="{label}"] .P6K39c')
            if element is not None:
                value = parse_numeric_value(element.get_text(strip=True))
                if value is not None:
                    return value
            text = rows.get(label.lower())
            if text is not None:
                value = parse_numeric_value(text)
                if value is not None:
                    return value
        return None

    @classmethod
    def parse_fundamentals(cls, symbol: str, html: str) -> SecondaryFundamentals:
        soup = BeautifulSoup(html, "html.parser")
        rows = cls._stat_rows(soup)
        values = {
            field: cls._extract_metric(soup, rows, labels)
            for field, labels in cls.METRIC_LABELS.items()
        }
        return SecondaryFundamentals(symbol=symbol, **values)

    # ------------------------------------------------------------------
    # FETCH
    # ------------------------------------------------------------------

    async def _request_text(self, url: str) -> str:
        session = await self._get_session()
        response = await session.get(url)
        response.raise_for_status()
        return response.text

    async def fetch_symbol_data(self, symbol: str) -> FetchResult[SecondaryFundamentals]:
        url = f"{self.base_url}{self.to_google_symbol(symbol)}"
        try:
            html = await asyncio.wait_for(self._request_text(url), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Google Finance timed out for %s after %.1fs", symbol, self.timeout_seconds)
            return FetchResult.failure(self.name, symbol, f"timeout after {self.timeout_seconds}s")
        except httpx.HTTPStatusError as exc:
            logger.debug(f"Google Finance status {exc.response.status_code} for {symbol}")
            return FetchResult.failure(self.name, symbol, f"http status {exc.response.status_code}")
        except Exception as exc:
            logger.debug(f"Google Finance request failed for {symbol}: {exc}")
            return FetchResult.failure(self.name, symbol, str(exc) or type(exc).__name__)

        try:
            fundamentals = self.parse_fundamentals(symbol, html)
        except Exception as exc:
            logger.debug(f"Google Finance markup parse failed for {symbol}: {exc}")
            return FetchResult.failure(self.name, symbol, f"parse failed: {exc}")

        if not fundamentals.has_any():
            logger.debug(f"No fundamentals found in Google Finance markup for {symbol}")
            return FetchResult.failure(self.name, symbol, "no fundamentals in markup")

        return FetchResult.success(fundamentals)
