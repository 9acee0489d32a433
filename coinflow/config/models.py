"""Typed configuration models for the dashboard core.

The config subsystem relies on pydantic to validate YAML files and to
provide strongly-typed objects to the rest of the runtime. Every section has
defaults so an empty YAML file (or none at all) yields a working BTC/ETH
dashboard.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, model_validator

from coinflow.core.enums import Period
from coinflow.core.types import Pair, Symbol


class ExchangeConfig(BaseModel):
    """Exchange REST settings (public market-data endpoints only)."""

    rest_endpoint: str = "https://api.binance.com"
    timeout_sec: PositiveFloat = 5.0
    quote_asset: str = Field("USDT", min_length=2)


class SymbolConfig(BaseModel):
    """Tracked asset with the seed values shown before the first fetch.

    ``pair`` defaults to ``symbol + quote_asset`` (resolved by
    :class:`DashboardConfig`), e.g. ``BTC`` -> ``BTCUSDT``.
    """

    symbol: str = Field(..., min_length=2)
    name: Optional[str] = None
    pair: Optional[str] = None
    seed_price: float = Field(..., gt=0, allow_inf_nan=False)
    seed_change_pct: float = Field(0.0, allow_inf_nan=False)

    model_config = ConfigDict(frozen=True)


class QuotesConfig(BaseModel):
    """Quote poller cadence."""

    poll_interval_sec: PositiveFloat = 1.0


class ChartConfig(BaseModel):
    """Candle chart settings: which symbol is charted and the initial range."""

    reference_symbol: str = Field("BTC", min_length=2)
    default_period: Period = Period.INTRADAY


class TelemetryConfig(BaseModel):
    """Logging switches."""

    log_level: str = Field("INFO")
    log_dir: Optional[str] = None


def _default_symbols() -> List[SymbolConfig]:
    return [
        SymbolConfig(symbol="BTC", name="Bitcoin", seed_price=64200.0, seed_change_pct=2.45),
        SymbolConfig(symbol="ETH", name="Ethereum", seed_price=3450.0, seed_change_pct=1.82),
    ]


class DashboardConfig(BaseModel):
    """Top-level config combining exchange, symbols, pollers and telemetry."""

    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    symbols: List[SymbolConfig] = Field(default_factory=_default_symbols)
    quotes: QuotesConfig = Field(default_factory=QuotesConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)
    timezone: str = Field("UTC")

    @model_validator(mode="after")
    def _check_symbols(self) -> "DashboardConfig":
        """Require a non-empty set of unique symbols."""

        if not self.symbols:
            raise ValueError("at least one symbol must be tracked")
        seen: set[str] = set()
        for cfg in self.symbols:
            if cfg.symbol in seen:
                raise ValueError(f"duplicate symbol: {cfg.symbol}")
            seen.add(cfg.symbol)
        return self

    @classmethod
    def default(cls) -> "DashboardConfig":
        return cls()

    @property
    def tracked_symbols(self) -> List[Symbol]:
        return [Symbol(cfg.symbol) for cfg in self.symbols]

    def symbol_config(self, symbol: str) -> SymbolConfig | None:
        for cfg in self.symbols:
            if cfg.symbol == symbol:
                return cfg
        return None

    def pair_for(self, symbol: str) -> Pair:
        """Return the exchange pair for ``symbol`` (tracked or not)."""

        cfg = self.symbol_config(symbol)
        if cfg is not None and cfg.pair:
            return Pair(cfg.pair)
        return Pair(f"{symbol}{self.exchange.quote_asset}")

    def pairs(self) -> Dict[Symbol, Pair]:
        return {Symbol(cfg.symbol): self.pair_for(cfg.symbol) for cfg in self.symbols}
