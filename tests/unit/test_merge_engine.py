from decimal import Decimal

from app.domain.models import ExchangeCode, FetchResult, LatestEarnings, Position, SecondaryFundamentals
from app.domain.services.merge_engine import merge_stock, prefer_non_empty
from app.utils.numbers import percent_of

TS = "2026-02-04T10:00:00+05:30"


def _failed(provider="yahoo", symbol="X"):
    return FetchResult.failure(provider, symbol, "timeout")


def test_prefer_non_empty_treats_zero_and_none_as_missing():
    assert prefer_non_empty(Decimal("15"), Decimal("20")) == Decimal("15")
    assert prefer_non_empty(Decimal("0"), Decimal("20")) == Decimal("20")
    assert prefer_non_empty(None, Decimal("20")) == Decimal("20")
    assert prefer_non_empty(None, Decimal("0")) is None
    assert prefer_non_empty(None, None, sentinel=Decimal("-1")) == Decimal("-1")


def test_merge_derives_exact_amounts(make_position, make_quote):
    position = make_position("X.NS", "100", 10)
    quote = FetchResult.success(make_quote("X.NS", "120"))

    stock = merge_stock(position, quote, _failed("google"), TS)

    assert stock.investment == Decimal("1000")
    assert stock.present_value == Decimal("1200")
    assert stock.gain_loss == Decimal("200")
    assert stock.gain_loss_percent == Decimal("20")
    assert stock.data_available is True
    assert stock.last_updated == TS
    assert stock.to_dict()["gain_loss_percent"] == 20.0


def test_quote_ratio_wins_over_fundamentals(make_position, make_quote):
    position = make_position("X.NS", "100", 1)
    quote = FetchResult.success(make_quote("X.NS", "110", pe_ratio=Decimal("15")))
    fundamentals = FetchResult.success(
        SecondaryFundamentals(symbol="X.NS", pe_ratio=Decimal("20"), pb_ratio=Decimal("3.1"))
    )

    stock = merge_stock(position, quote, fundamentals, TS)

    assert stock.pe_ratio == Decimal("15")
    # per-field fallback: the quote has no P/B, so the scraped one is used
    assert stock.pb_ratio == Decimal("3.1")
    assert stock.dividend_yield is None


def test_zero_quote_ratio_falls_back_to_fundamentals(make_position, make_quote):
    position = make_position("X.NS", "100", 1)
    quote = FetchResult.success(make_quote("X.NS", "110", pe_ratio=Decimal("0")))
    fundamentals = FetchResult.success(SecondaryFundamentals(symbol="X.NS", pe_ratio=Decimal("20")))

    stock = merge_stock(position, quote, fundamentals, TS)

    assert stock.pe_ratio == Decimal("20")


def test_failed_quote_degrades_to_purchase_price(make_position):
    position = make_position("X.NS", "250", 4)
    fundamentals = FetchResult.success(SecondaryFundamentals(symbol="X.NS", pe_ratio=Decimal("20")))

    stock = merge_stock(position, _failed(), fundamentals, TS)

    assert stock.current_market_price == Decimal("250")
    assert stock.gain_loss == Decimal("0")
    assert stock.gain_loss_percent == Decimal("0")
    assert stock.pe_ratio == Decimal("20")
    assert stock.data_available is False
    assert stock.latest_earnings == LatestEarnings()
    assert stock.day_change == Decimal("0")
    assert stock.volume == 0


def test_non_positive_quote_price_uses_purchase_price(make_position, make_quote):
    position = make_position("X.NS", "250", 4)
    quote = FetchResult.success(make_quote("X.NS", "0"))

    stock = merge_stock(position, quote, _failed("google"), TS)

    assert stock.current_market_price == Decimal("250")
    assert stock.data_available is True


def test_both_providers_failed_yields_neutral_stock(make_position):
    position = make_position("543517.BO", "80", 5, sector=None)

    stock = merge_stock(position, _failed(), _failed("google"), TS)

    assert stock.exchange == ExchangeCode.BSE
    assert stock.pe_ratio is None
    assert stock.sector_name == "Uncategorized"
    payload = stock.to_dict()
    assert payload["latest_earnings"] == {"date": None, "eps": 0.0}
    assert payload["data_available"] is False


def test_intermediates_are_not_rounded(make_position, make_quote):
    position = make_position("X.NS", "33.333", 3)
    quote = FetchResult.success(make_quote("X.NS", "33.336"))

    stock = merge_stock(position, quote, _failed("google"), TS)

    assert stock.investment == Decimal("99.999")
    assert stock.gain_loss == Decimal("0.009")
    assert stock.to_dict()["gain_loss"] == 0.01


def test_zero_investment_yields_zero_ratios():
    position = Position(symbol="Z.NS", display_name="Zero", purchase_price=Decimal("0"), quantity=10)

    stock = merge_stock(position, _failed(), _failed("google"), TS)

    assert stock.investment == Decimal("0")
    assert stock.gain_loss == Decimal("0")
    assert stock.gain_loss_percent == Decimal("0")
    assert stock.to_dict()["gain_loss_percent"] == 0.0
    assert percent_of(Decimal("5"), Decimal("0")) == Decimal("0")
