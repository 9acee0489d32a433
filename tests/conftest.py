from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping

import httpx
import pytest

from coinflow.config.models import DashboardConfig, ExchangeConfig
from coinflow.core.errors import TransportError
from coinflow.core.types import Symbol
from coinflow.data_feed.binance_client import BinanceClient
from coinflow.data_feed.candles import CandleSeries
from coinflow.data_feed.quotes import TickerSnapshot
from coinflow.runtime.state import DashboardState

BASE_URL = "https://api.binance.test"


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def dashboard_config() -> DashboardConfig:
    return DashboardConfig.model_validate(
        {
            "exchange": {"rest_endpoint": BASE_URL},
            "quotes": {"poll_interval_sec": 0.01},
        }
    )


@pytest.fixture
def dashboard_state(dashboard_config: DashboardConfig) -> DashboardState:
    return DashboardState.seeded(dashboard_config)


@pytest.fixture
def ticker_payload() -> Callable[..., Dict[str, Any]]:
    def _factory(price: Any = "65000.10", change: Any = "1.50") -> Dict[str, Any]:
        return {"symbol": "BTCUSDT", "lastPrice": price, "priceChangePercent": change, "volume": "1234.5"}

    return _factory


@pytest.fixture
def kline_row() -> Callable[[int, Any], List[Any]]:
    def _factory(open_time: int, close: Any) -> List[Any]:
        return [open_time, "100.0", "110.0", "90.0", close, "12.5", open_time + 299_999, "1250.0", 42, "6.0", "600.0", "0"]

    return _factory


class FakeBinance:
    """In-memory Binance REST stub served through :class:`httpx.MockTransport`."""

    def __init__(self) -> None:
        self.tickers: Dict[str, Any] = {}
        self.ticker_status: Dict[str, int] = {}
        self.klines: Any = []
        self.kline_status = 200
        self.fail_network: set[str] = set()
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        symbol = request.url.params.get("symbol", "")
        if symbol in self.fail_network:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/api/v3/ticker/24hr":
            status = self.ticker_status.get(symbol, 200)
            if status != 200:
                return httpx.Response(status, json={"code": -1121, "msg": "Invalid symbol."})
            if symbol not in self.tickers:
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            return httpx.Response(200, json=self.tickers[symbol])
        if request.url.path == "/api/v3/klines":
            if self.kline_status != 200:
                return httpx.Response(self.kline_status, json={"code": -1003, "msg": "Too many requests."})
            return httpx.Response(200, json=self.klines)
        return httpx.Response(404)


@pytest.fixture
def fake_binance() -> FakeBinance:
    return FakeBinance()


@pytest.fixture
def make_client(fake_binance: FakeBinance) -> Callable[[], BinanceClient]:
    def _factory() -> BinanceClient:
        session = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(fake_binance.handler))
        return BinanceClient(ExchangeConfig(rest_endpoint=BASE_URL), session=session)

    return _factory


@pytest.fixture
def snapshot() -> Callable[[str, float | None, float | None], TickerSnapshot]:
    def _factory(symbol: str, price: float | None, change: float | None) -> TickerSnapshot:
        return TickerSnapshot(symbol=Symbol(symbol), last_price=price, change_pct=change)

    return _factory


class GatedQuoteFetcher:
    """Quote fetcher stub whose calls complete only when the test releases them."""

    def __init__(self) -> None:
        self.calls: List[asyncio.Future] = []
        self.last_latency_ms = 0.0

    async def fetch_quotes(self, symbols) -> Mapping[Symbol, TickerSnapshot]:
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self.calls.append(future)
        return await future

    def resolve(self, index: int, result: Mapping[Symbol, TickerSnapshot]) -> None:
        self.calls[index].set_result(result)

    def fail(self, index: int, message: str = "boom") -> None:
        self.calls[index].set_exception(TransportError(message, status_code=503))

    def release_all(self) -> None:
        for future in self.calls:
            if not future.done():
                future.set_exception(TransportError("released", status_code=503))


@pytest.fixture
def gated_quote_fetcher() -> GatedQuoteFetcher:
    return GatedQuoteFetcher()


class GatedCandleFetcher:
    """Candle fetcher stub with per-call futures."""

    def __init__(self) -> None:
        self.calls: List[tuple[Any, asyncio.Future]] = []
        self.last_latency_ms = 0.0

    async def fetch_candles(self, period) -> CandleSeries:
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self.calls.append((period, future))
        return await future

    def resolve(self, index: int, series: CandleSeries) -> None:
        self.calls[index][1].set_result(series)

    def fail(self, index: int, error: Exception) -> None:
        self.calls[index][1].set_exception(error)

    def release_all(self) -> None:
        for _, future in self.calls:
            if not future.done():
                future.set_exception(TransportError("released"))


@pytest.fixture
def gated_candle_fetcher() -> GatedCandleFetcher:
    return GatedCandleFetcher()


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """Let pending callbacks and tasks run."""

    async def _settle(rounds: int = 5) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def wait_for() -> Callable[..., Awaitable[None]]:
    """Poll ``predicate`` until it holds or ``timeout`` expires."""

    async def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _wait_for
