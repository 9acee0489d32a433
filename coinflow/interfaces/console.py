"""Console renderer: a minimal stand-in for the dashboard UI.

It subscribes to :class:`DashboardState` and logs a formatted line per quote
and a one-line chart summary, using the same formatting rules the web cards
use (USD with two decimals, signed percent change).
"""
from __future__ import annotations

import logging
from typing import List

from coinflow.config.models import DashboardConfig
from coinflow.core.time_utils import format_axis_label, format_tooltip_label
from coinflow.runtime.state import DashboardState

LOGGER = logging.getLogger(__name__)

LOADING_TEXT = "loading..."
NO_DATA_TEXT = "no data"


def format_price(price: float) -> str:
    """``64200`` -> ``$64,200.00``."""

    sign = "-" if price < 0 else ""
    return f"{sign}${abs(price):,.2f}"


def format_change(change: float) -> str:
    """``2.449`` -> ``+2.45%``; negative values keep their own sign."""

    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.2f}%"


class ConsoleRenderer:
    """Render quote cards and the chart summary as log lines."""

    def __init__(self, config: DashboardConfig, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._logger = logger or LOGGER
        self._last_quote_lines: List[str] = []
        self._last_chart_line: str | None = None

    def __call__(self, state: DashboardState) -> None:
        quote_lines = self.render_quotes(state)
        if quote_lines != self._last_quote_lines:
            for line in quote_lines:
                self._logger.info(line)
            self._last_quote_lines = quote_lines
        chart_line = self.render_chart(state)
        if chart_line != self._last_chart_line:
            self._logger.info(chart_line)
            self._last_chart_line = chart_line

    def render_quotes(self, state: DashboardState) -> List[str]:
        lines: List[str] = []
        for symbol in state.quotes:
            quote = state.quotes[symbol]
            cfg = self._config.symbol_config(symbol)
            name = cfg.name if cfg and cfg.name else symbol
            if state.quotes.updated_at is None and state.quotes_loading:
                price_text = LOADING_TEXT
            else:
                price_text = format_price(quote.price)
            flag = " (stale)" if state.quotes.stale or quote.is_default else ""
            lines.append(f"{name} {symbol}: {price_text} {format_change(quote.change_24h)} 24h{flag}")
        return lines

    def render_chart(self, state: DashboardState) -> str:
        reference = self._config.chart.reference_symbol
        header = f"{reference} price trend [{state.period.value}]"
        if state.candles_loading:
            return f"{header}: {LOADING_TEXT}"
        series = state.candles
        latest = series.latest()
        if latest is None:
            return f"{header}: {NO_DATA_TEXT}"
        first = series.points[0]
        tz = self._config.timezone
        return (
            f"{header}: {len(series)} points "
            f"{format_axis_label(first.timestamp_ms, state.period, tz)} -> "
            f"{format_axis_label(latest.timestamp_ms, state.period, tz)}, "
            f"last close {format_price(latest.close)} at {format_tooltip_label(latest.timestamp_ms, tz)}"
        )
