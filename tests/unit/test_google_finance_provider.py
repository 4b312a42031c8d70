from decimal import Decimal

import httpx
import pytest

from app.infrastructure.market_data.google_finance_provider import (
    GoogleFinanceProvider,
    parse_numeric_value,
)

STATS_HTML = """
<html><body>
  <div class="gyFHrc"><div class="mfs7Fc">Market cap</div><div class="P6K39c">12.5T INR</div></div>
  <div class="gyFHrc"><div class="mfs7Fc">P/E ratio</div><div class="P6K39c">22.41</div></div>
  <div class="gyFHrc"><div class="mfs7Fc">Dividend yield</div><div class="P6K39c">1.15%</div></div>
  <div class="gyFHrc"><div class="mfs7Fc">Return on equity</div><div class="P6K39c">—</div></div>
  <div data-test="Price/Book"><span class="P6K39c">3.05</span></div>
</body></html>
"""


@pytest.mark.parametrize(
    "text,expected",
    [
        ("22.41", Decimal("22.41")),
        ("1.15%", Decimal("1.15")),
        ("₹1,234.50", Decimal("1234.50")),
        ("1.5K", Decimal("1500.0")),
        ("2B", Decimal("2000000000")),
        ("−5.20%", Decimal("-5.20")),
        ("−1.2K", Decimal("-1200.0")),
        ("—", None),
        ("N/A", None),
        ("garbage", None),
        (None, None),
    ],
)
def test_parse_numeric_value(text, expected):
    assert parse_numeric_value(text) == expected


def test_to_google_symbol():
    assert GoogleFinanceProvider.to_google_symbol("reliance.ns") == "RELIANCE:NSE"
    assert GoogleFinanceProvider.to_google_symbol("TCS.BO") == "TCS:NSE"
    assert GoogleFinanceProvider.to_google_symbol("INFY") == "INFY:NSE"


def test_parse_fundamentals_from_stat_rows_and_data_test():
    fundamentals = GoogleFinanceProvider.parse_fundamentals("TCS.NS", STATS_HTML)

    assert fundamentals.pe_ratio == Decimal("22.41")
    assert fundamentals.pb_ratio == Decimal("3.05")
    assert fundamentals.dividend_yield == Decimal("1.15")
    assert fundamentals.return_on_equity is None


def _provider_with(handler) -> GoogleFinanceProvider:
    provider = GoogleFinanceProvider(base_url="https://finance.test/quote", timeout_seconds=1)
    provider.session = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return provider


@pytest.mark.asyncio
async def test_fetch_symbol_data_success():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, text=STATS_HTML)

    provider = _provider_with(handler)
    try:
        result = await provider.fetch_symbol_data("TCS.NS")
    finally:
        await provider.close()

    assert result.ok
    assert result.value.pe_ratio == Decimal("22.41")
    assert seen == ["https://finance.test/quote/TCS:NSE"]


@pytest.mark.asyncio
async def test_fetch_symbol_data_http_error_is_failure():
    provider = _provider_with(lambda request: httpx.Response(503, text="busy"))
    try:
        result = await provider.fetch_symbol_data("TCS.NS")
    finally:
        await provider.close()

    assert not result.ok
    assert result.error.provider == "google"
    assert "503" in result.error.reason


@pytest.mark.asyncio
async def test_fetch_symbol_data_without_stats_is_failure():
    provider = _provider_with(lambda request: httpx.Response(200, text="<html><body>consent</body></html>"))
    try:
        result = await provider.fetch_symbol_data("TCS.NS")
    finally:
        await provider.close()

    assert not result.ok
    assert result.error.reason == "no fundamentals in markup"


@pytest.mark.asyncio
async def test_fetch_symbol_data_network_error_is_failure():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    provider = _provider_with(handler)
    try:
        result = await provider.fetch_symbol_data("TCS.NS")
    finally:
        await provider.close()

    assert not result.ok
    assert "unreachable" in result.error.reason
