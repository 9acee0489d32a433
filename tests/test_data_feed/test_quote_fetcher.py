from __future__ import annotations

import pytest

from coinflow.core.errors import TransportError
from coinflow.core.types import Symbol
from coinflow.data_feed.quotes import QuoteFetcher, parse_decimal, parse_ticker_response

SYMBOLS = [Symbol("BTC"), Symbol("ETH")]


def test_parse_decimal_should_reject_non_numeric_and_non_finite() -> None:
    assert parse_decimal("64200.50") == 64200.5
    assert parse_decimal(3) == 3.0
    assert parse_decimal("-1.25") == -1.25
    assert parse_decimal("abc") is None
    assert parse_decimal("") is None
    assert parse_decimal(None) is None
    assert parse_decimal(True) is None
    assert parse_decimal("NaN") is None
    assert parse_decimal("inf") is None


def test_parse_ticker_should_mark_bad_fields_as_none(ticker_payload) -> None:
    snap = parse_ticker_response(Symbol("BTC"), ticker_payload("65000", "n/a"))
    assert snap.last_price == 65000.0
    assert snap.change_pct is None
    assert not snap.complete

    zero_price = parse_ticker_response(Symbol("BTC"), ticker_payload("0.00000000", "0.000"))
    assert zero_price.last_price is None
    assert zero_price.change_pct == 0.0

    missing = parse_ticker_response(Symbol("BTC"), {})
    assert missing.last_price is None and missing.change_pct is None


@pytest.mark.asyncio
async def test_fetch_quotes_should_return_every_symbol(dashboard_config, fake_binance, make_client, ticker_payload) -> None:
    fake_binance.tickers["BTCUSDT"] = ticker_payload("65000.10", "1.50")
    fake_binance.tickers["ETHUSDT"] = ticker_payload("3500.00", "-0.75")
    client = make_client()
    fetcher = QuoteFetcher(client, dashboard_config.pair_for)

    result = await fetcher.fetch_quotes(SYMBOLS)
    await client.aclose()

    assert set(result) == {"BTC", "ETH"}
    assert result[Symbol("BTC")].last_price == 65000.10
    assert result[Symbol("ETH")].change_pct == -0.75
    assert len(fake_binance.requests) == 2


@pytest.mark.asyncio
async def test_fetch_quotes_should_fail_wholly_when_one_symbol_fails(dashboard_config, fake_binance, make_client, ticker_payload) -> None:
    fake_binance.tickers["BTCUSDT"] = ticker_payload()
    fake_binance.ticker_status["ETHUSDT"] = 500
    client = make_client()
    fetcher = QuoteFetcher(client, dashboard_config.pair_for)

    with pytest.raises(TransportError):
        await fetcher.fetch_quotes(SYMBOLS)
    await client.aclose()
    # both requests were issued, neither waited on the other
    assert {req.url.params["symbol"] for req in fake_binance.requests} == {"BTCUSDT", "ETHUSDT"}


@pytest.mark.asyncio
async def test_fetch_quotes_is_idempotent(dashboard_config, fake_binance, make_client, ticker_payload) -> None:
    fake_binance.tickers["BTCUSDT"] = ticker_payload("65000.10", "1.50")
    fake_binance.tickers["ETHUSDT"] = ticker_payload("3500.00", "oops")
    client = make_client()
    fetcher = QuoteFetcher(client, dashboard_config.pair_for)

    first = await fetcher.fetch_quotes(SYMBOLS)
    second = await fetcher.fetch_quotes(SYMBOLS)
    await client.aclose()
    assert first == second
