"""Fallback and staleness rules applied after every fetch attempt.

Quotes degrade gracefully: a failed cycle keeps the last known QuoteSet and a
field that failed to parse keeps its last known value. Candles do not: a
failed fetch clears the chart so outdated data is never shown as current.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping

from coinflow.config.models import DashboardConfig
from coinflow.core.enums import Period
from coinflow.core.time_utils import now_utc
from coinflow.core.types import Symbol
from coinflow.data_feed.candles import CandleSeries
from coinflow.data_feed.quotes import TickerSnapshot
from coinflow.runtime.state import DashboardState, Quote, QuoteSet

LOGGER = logging.getLogger(__name__)


class FallbackPolicy:
    """Decide what the view model holds after each quote or candle cycle."""

    def __init__(self, config: DashboardConfig, clock: Callable = now_utc) -> None:
        self._seeds = QuoteSet.seeded(config.symbols)
        self._clock = clock

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------
    def begin_quotes(self, state: DashboardState) -> None:
        state.quotes_loading = True
        state.notify()

    def apply_quotes(self, state: DashboardState, snapshots: Mapping[Symbol, TickerSnapshot]) -> QuoteSet:
        """Replace the QuoteSet with ``snapshots``, filling unparseable fields."""

        previous = state.quotes
        quotes: Dict[Symbol, Quote] = {}
        for symbol in previous.symbols:
            snapshot = snapshots.get(symbol)
            prior = previous.get(symbol) or self._seeds.get(symbol)
            if snapshot is None or prior is None:
                # Untracked or missing symbols never shrink the set.
                if prior is not None:
                    quotes[symbol] = prior
                continue
            quotes[symbol] = self._merge(prior, snapshot)
        quote_set = QuoteSet(quotes=quotes, stale=False, updated_at=self._clock())
        state.quotes = quote_set
        state.quotes_loading = False
        state.notify()
        return quote_set

    def apply_quote_failure(self, state: DashboardState, error: Exception) -> QuoteSet:
        """Keep the previous values and flag them as stale."""

        LOGGER.warning("Quote cycle failed, keeping last known quotes: %s", error)
        previous = state.quotes
        state.quotes = QuoteSet(quotes=previous.quotes, stale=True, updated_at=previous.updated_at)
        state.quotes_loading = False
        state.notify()
        return state.quotes

    @staticmethod
    def _merge(prior: Quote, snapshot: TickerSnapshot) -> Quote:
        price = snapshot.last_price if snapshot.last_price is not None else prior.price
        change = snapshot.change_pct if snapshot.change_pct is not None else prior.change_24h
        return Quote(
            symbol=prior.symbol,
            price=price,
            change_24h=change,
            is_default=not snapshot.complete,
        )

    # ------------------------------------------------------------------
    # Candles
    # ------------------------------------------------------------------
    def begin_candles(self, state: DashboardState, period: Period) -> None:
        state.period = period
        state.candles_loading = True
        state.notify()

    def apply_candles(self, state: DashboardState, series: CandleSeries) -> CandleSeries:
        state.candles = series
        state.candles_loading = False
        state.notify()
        return series

    def apply_candle_failure(self, state: DashboardState, period: Period, error: Exception) -> CandleSeries:
        """Clear the chart: no stale candles are retained."""

        LOGGER.warning("Candle fetch failed for %s, clearing chart: %s", period.value, error)
        state.candles = CandleSeries.empty(period)
        state.candles_loading = False
        state.notify()
        return state.candles
