"""Ticker fetching and field-level parsing for tracked symbols."""
from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping

from coinflow.core.errors import PayloadError
from coinflow.core.types import JSONLike, Pair, Symbol

from .binance_client import BinanceClient

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TickerSnapshot:
    """Parsed 24h ticker for one symbol.

    ``None`` marks a field that could not be parsed; the fallback policy fills
    it from the previous quote.
    """

    symbol: Symbol
    last_price: float | None
    change_pct: float | None

    @property
    def complete(self) -> bool:
        return self.last_price is not None and self.change_pct is not None


def parse_decimal(value: Any) -> float | None:
    """Coerce an exchange decimal (string or number) to a finite float."""

    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def parse_ticker_response(symbol: Symbol, payload: JSONLike) -> TickerSnapshot:
    """Convert a ``/ticker/24hr`` payload into :class:`TickerSnapshot`."""

    if not isinstance(payload, Mapping):
        raise PayloadError(f"ticker payload for {symbol} is not an object")
    price = parse_decimal(payload.get("lastPrice"))
    if price is not None and price <= 0:
        price = None
    change = parse_decimal(payload.get("priceChangePercent"))
    if price is None or change is None:
        LOGGER.warning(
            "Unparseable ticker field for %s",
            symbol,
            extra={"last_price_raw": payload.get("lastPrice"), "change_raw": payload.get("priceChangePercent")},
        )
    return TickerSnapshot(symbol=symbol, last_price=price, change_pct=change)


class QuoteFetcher:
    """Fan-out/fan-in ticker fetch over a fixed symbol set.

    One request per symbol is issued concurrently; the call succeeds only when
    every request succeeds, otherwise the first failure is raised and no
    partial result is returned.
    """

    def __init__(self, client: BinanceClient, pair_for: Callable[[str], Pair]) -> None:
        self._client = client
        self._pair_for = pair_for
        self.last_latency_ms: float = 0.0

    async def fetch_quotes(self, symbols: Iterable[Symbol]) -> Dict[Symbol, TickerSnapshot]:
        unique: List[Symbol] = []
        for symbol in symbols:
            if symbol not in unique:
                unique.append(symbol)
        results = await asyncio.gather(
            *(self._fetch_one(symbol) for symbol in unique),
            return_exceptions=True,
        )
        snapshots: Dict[Symbol, TickerSnapshot] = {}
        latencies: List[float] = []
        for symbol, result in zip(unique, results):
            if isinstance(result, BaseException):
                raise result
            snapshot, latency = result
            snapshots[symbol] = snapshot
            latencies.append(latency)
        self.last_latency_ms = max(latencies) if latencies else 0.0
        return snapshots

    async def _fetch_one(self, symbol: Symbol) -> tuple[TickerSnapshot, float]:
        ticker = await self._client.fetch_ticker_24h(self._pair_for(symbol))
        return parse_ticker_response(symbol, ticker.data), ticker.latency_ms
