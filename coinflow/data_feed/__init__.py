"""Market data ingestion and normalization package.

Modules placed here talk to the exchange's public REST endpoints and turn raw
ticker and kline payloads into the normalized structures consumed by the
pipeline (ticker snapshots, candle series).
"""

from .binance_client import BinanceClient, DataWithLatency
from .candles import CandleFetcher, CandlePoint, CandleSeries, KlineParams, map_period, parse_kline_rows
from .quotes import QuoteFetcher, TickerSnapshot, parse_ticker_response

__all__ = [
    "BinanceClient",
    "CandleFetcher",
    "CandlePoint",
    "CandleSeries",
    "DataWithLatency",
    "KlineParams",
    "QuoteFetcher",
    "TickerSnapshot",
    "map_period",
    "parse_kline_rows",
    "parse_ticker_response",
]
