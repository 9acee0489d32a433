"""Binance data-feed client wrapping the public REST market-data API.

The client covers the two endpoints the dashboard needs:

* ``GET /api/v3/ticker/24hr`` for the latest price and 24h percent change;
* ``GET /api/v3/klines`` for candle rows ``[openTime, open, high, low, close, ...]``.

Latency is recorded for every REST call as ``(response_time - request_time)`` in
milliseconds and logged by the pipelines. Requests are never retried here: a
failed call surfaces as :class:`TransportError` and the next scheduled cycle is
the recovery path.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Generic, Mapping, Optional, Sequence, TypeVar

import httpx

from coinflow.config.models import ExchangeConfig
from coinflow.core.errors import PayloadError, TransportError
from coinflow.core.types import JSONLike, KlineRow, Pair

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class DataWithLatency(Generic[T]):
    """Container used by fetch helpers to propagate measured latency."""

    data: T
    latency_ms: float


class BinanceClient:
    """Asynchronous REST client for Binance spot market data.

    Parameters
    ----------
    exchange_config:
        :class:`coinflow.config.models.ExchangeConfig` with the REST endpoint
        and request timeout.
    session:
        Optional pre-configured :class:`httpx.AsyncClient` (e.g. one built on
        :class:`httpx.MockTransport` for tests).

    Notes
    -----
    Only network errors and non-2xx statuses are transport failures. A 2xx
    response whose body is not valid JSON, or not of the expected shape, is a
    :class:`PayloadError`.
    """

    def __init__(
        self,
        exchange_config: ExchangeConfig,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self._rest_base = exchange_config.rest_endpoint
        self._timeout = exchange_config.timeout_sec
        self._client = session or httpx.AsyncClient(base_url=self._rest_base, timeout=self._timeout)

    # ------------------------------------------------------------------
    # REST helpers
    # ------------------------------------------------------------------
    async def aclose(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def _request(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
    ) -> tuple[Any, float]:
        """Perform a GET request and return ``(json_payload, latency_ms)``."""

        url_path = path if path.startswith("/") else f"/{path}"
        start = time.perf_counter()
        try:
            response = await self._client.get(url_path, params=dict(params or {}))
            latency_ms = (time.perf_counter() - start) * 1_000.0
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise TransportError(f"GET {url_path} returned HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"GET {url_path} failed: {exc}") from exc
        try:
            payload = response.json()
        except ValueError as exc:
            raise PayloadError(f"GET {url_path} returned a non-JSON body") from exc
        LOGGER.debug("GET %s ok", url_path, extra={"latency_ms": round(latency_ms, 3)})
        return payload, latency_ms

    # ------------------------------------------------------------------
    # Public market data
    # ------------------------------------------------------------------
    async def fetch_ticker_24h(self, pair: Pair | str) -> DataWithLatency[JSONLike]:
        """Return 24h ticker statistics for ``pair``.

        The payload carries at least ``lastPrice`` and ``priceChangePercent``
        as decimal strings.
        """

        payload, latency = await self._request("/api/v3/ticker/24hr", params={"symbol": pair})
        if not isinstance(payload, Mapping):
            raise PayloadError(f"ticker payload for {pair} is not an object")
        return DataWithLatency(payload, latency)

    async def fetch_klines(
        self,
        pair: Pair | str,
        interval: str,
        limit: int,
    ) -> DataWithLatency[Sequence[KlineRow]]:
        """Return raw kline rows for ``pair``, oldest first."""

        params = {
            "symbol": pair,
            "interval": interval,
            "limit": limit,
        }
        payload, latency = await self._request("/api/v3/klines", params=params)
        if not isinstance(payload, list):
            raise PayloadError(f"kline payload for {pair} is not a list")
        return DataWithLatency(payload, latency)
