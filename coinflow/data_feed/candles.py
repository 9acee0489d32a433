"""Utilities for fetching and normalizing Binance kline data for charting."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, NamedTuple, Sequence

from coinflow.core.enums import Period
from coinflow.core.errors import PayloadError
from coinflow.core.time_utils import ms_to_datetime
from coinflow.core.types import KlineRow, Pair, TimestampMs

from .binance_client import BinanceClient

LOGGER = logging.getLogger(__name__)


class KlineParams(NamedTuple):
    """Provider interval and row limit for one chart range."""

    interval: str
    limit: int


PERIOD_PARAMS: Dict[Period, KlineParams] = {
    Period.INTRADAY: KlineParams("5m", 288),
    Period.WEEK: KlineParams("1h", 168),
    Period.MONTH: KlineParams("4h", 180),
    Period.YEAR: KlineParams("1d", 365),
}


def map_period(period: Period | str | Any) -> KlineParams:
    """Return interval/limit for ``period``; unknown values map to 1D."""

    return PERIOD_PARAMS[Period.from_value(period)]


@dataclass(slots=True, frozen=True)
class CandlePoint:
    """Chart point: candle open time (epoch ms) and close price."""

    timestamp_ms: TimestampMs
    close: float

    @property
    def time(self) -> datetime:
        return ms_to_datetime(self.timestamp_ms)

    @property
    def iso(self) -> str:
        return self.time.isoformat()


@dataclass(slots=True, frozen=True)
class CandleSeries:
    """Close-price series for one period, ascending by open time.

    An empty series means "no data"; whether a fetch is still running is
    tracked separately by the view model.
    """

    period: Period
    points: tuple[CandlePoint, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, period: Period) -> "CandleSeries":
        return cls(period=period, points=())

    @property
    def is_empty(self) -> bool:
        return not self.points

    def __len__(self) -> int:
        return len(self.points)

    def latest(self) -> CandlePoint | None:
        if not self.points:
            return None
        return self.points[-1]

    def to_chart_points(self) -> List[Dict[str, Any]]:
        """Convenience representation for chart widgets (``date``/``value``)."""

        return [{"date": point.iso, "value": point.close} for point in self.points]


def _parse_row(index: int, raw: KlineRow) -> CandlePoint:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence) or len(raw) < 5:
        raise PayloadError(f"kline row {index} is not a [openTime, open, high, low, close, ...] sequence")
    open_time = raw[0]
    if isinstance(open_time, bool) or not isinstance(open_time, int):
        raise PayloadError(f"kline row {index} has a non-integer open time: {open_time!r}")
    try:
        close = float(raw[4])
    except (TypeError, ValueError) as exc:
        raise PayloadError(f"kline row {index} has a non-numeric close: {raw[4]!r}") from exc
    if not math.isfinite(close):
        raise PayloadError(f"kline row {index} has a non-finite close: {raw[4]!r}")
    return CandlePoint(timestamp_ms=TimestampMs(open_time), close=close)


def parse_kline_rows(payload: Any, limit: int | None = None) -> tuple[CandlePoint, ...]:
    """Convert Binance kline rows into :class:`CandlePoint` objects.

    Only position 0 (open time) and position 4 (close) are used. Row order is
    preserved as delivered (Binance returns oldest first); when more than
    ``limit`` rows arrive only the newest ``limit`` are kept.
    """

    if not isinstance(payload, list):
        raise PayloadError("kline payload is not a list")
    points = [_parse_row(index, raw) for index, raw in enumerate(payload)]
    if limit is not None and len(points) > limit:
        points = points[-limit:]
    return tuple(points)


class CandleFetcher:
    """Fetch the close-price series of the reference pair for a period."""

    def __init__(self, client: BinanceClient, pair: Pair | str) -> None:
        self._client = client
        self.pair = pair
        self.last_latency_ms: float = 0.0

    async def fetch_candles(self, period: Period | str) -> CandleSeries:
        resolved = Period.from_value(period)
        params = map_period(resolved)
        klines = await self._client.fetch_klines(self.pair, params.interval, params.limit)
        self.last_latency_ms = klines.latency_ms
        points = parse_kline_rows(klines.data, params.limit)
        LOGGER.debug(
            "Fetched %s candles for %s",
            len(points),
            self.pair,
            extra={"period": resolved.value, "interval": params.interval, "latency_ms": round(klines.latency_ms, 3)},
        )
        return CandleSeries(period=resolved, points=points)
