"""View-model state owned by the dashboard pipelines.

The pipelines mutate :class:`DashboardState` in place; the render layer never
reads globals but subscribes to the state and re-renders on every
notification. ``QuoteSet`` and ``CandleSeries`` values are immutable and get
replaced wholesale, so a listener always observes a consistent snapshot.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping

from coinflow.config.models import DashboardConfig, SymbolConfig
from coinflow.core.enums import Period
from coinflow.core.types import Symbol
from coinflow.data_feed.candles import CandleSeries

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Quote:
    """Latest price and 24h percent change for one symbol.

    ``is_default`` is set while the values are seeds or when any field of the
    latest response had to fall back to the previous value.
    """

    symbol: Symbol
    price: float
    change_24h: float
    is_default: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": self.price,
            "change_24h": self.change_24h,
            "is_default": self.is_default,
        }


@dataclass(slots=True, frozen=True)
class QuoteSet:
    """Quotes for every tracked symbol; never partial.

    ``stale`` is true until the first successful fetch and after any failed
    cycle; ``updated_at`` is the time of the last successful apply.
    """

    quotes: Mapping[Symbol, Quote]
    stale: bool = True
    updated_at: datetime | None = None

    @classmethod
    def seeded(cls, symbols: Iterable[SymbolConfig]) -> "QuoteSet":
        quotes = {
            Symbol(cfg.symbol): Quote(
                symbol=Symbol(cfg.symbol),
                price=cfg.seed_price,
                change_24h=cfg.seed_change_pct,
                is_default=True,
            )
            for cfg in symbols
        }
        return cls(quotes=quotes)

    def __getitem__(self, symbol: str) -> Quote:
        return self.quotes[Symbol(symbol)]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.quotes

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.quotes)

    def __len__(self) -> int:
        return len(self.quotes)

    def get(self, symbol: str) -> Quote | None:
        return self.quotes.get(Symbol(symbol))

    @property
    def symbols(self) -> List[Symbol]:
        return list(self.quotes)


StateListener = Callable[["DashboardState"], None]


@dataclass(slots=True)
class DashboardState:
    """Mutable view model: quotes, chart series, period and loading flags."""

    quotes: QuoteSet
    period: Period = Period.INTRADAY
    candles: CandleSeries = field(default_factory=lambda: CandleSeries.empty(Period.INTRADAY))
    quotes_loading: bool = True
    candles_loading: bool = True
    _listeners: List[StateListener] = field(default_factory=list, repr=False)

    @classmethod
    def seeded(cls, config: DashboardConfig) -> "DashboardState":
        period = config.chart.default_period
        return cls(
            quotes=QuoteSet.seeded(config.symbols),
            period=period,
            candles=CandleSeries.empty(period),
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                LOGGER.exception("State listener failed", extra={"listener": repr(listener)})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quotes": {symbol: quote.to_dict() for symbol, quote in self.quotes.quotes.items()},
            "quotes_stale": self.quotes.stale,
            "quotes_updated_at": self.quotes.updated_at.isoformat() if self.quotes.updated_at else None,
            "quotes_loading": self.quotes_loading,
            "period": self.period.value,
            "candles": self.candles.to_chart_points(),
            "candles_loading": self.candles_loading,
        }
