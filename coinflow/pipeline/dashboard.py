"""Dashboard facade wiring the client, fetchers, policy and pipelines."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from coinflow.config.models import DashboardConfig
from coinflow.core.enums import Period
from coinflow.data_feed.binance_client import BinanceClient
from coinflow.data_feed.candles import CandleFetcher
from coinflow.data_feed.quotes import QuoteFetcher
from coinflow.runtime.state import DashboardState, StateListener

from .chart import ChartPipeline
from .fallback import FallbackPolicy
from .poller import QuotePoller

LOGGER = logging.getLogger(__name__)


class Dashboard:
    """Own the view model and both pipelines for the lifetime of a view.

    ``start`` begins quote polling and loads the default chart period;
    ``stop`` cancels every scheduled fetch; ``aclose`` additionally waits for
    in-flight requests and closes the HTTP client.
    """

    def __init__(
        self,
        config: DashboardConfig,
        client: BinanceClient,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self._logger = logger or LOGGER
        self.state = DashboardState.seeded(config)
        self.policy = FallbackPolicy(config)
        self.quote_fetcher = QuoteFetcher(client, config.pair_for)
        self.candle_fetcher = CandleFetcher(client, config.pair_for(config.chart.reference_symbol))
        self.poller = QuotePoller(
            fetcher=self.quote_fetcher,
            policy=self.policy,
            state=self.state,
            symbols=config.tracked_symbols,
            interval_sec=config.quotes.poll_interval_sec,
            logger=self._logger.getChild("quotes"),
        )
        self.chart = ChartPipeline(
            fetcher=self.candle_fetcher,
            policy=self.policy,
            state=self.state,
            logger=self._logger.getChild("chart"),
        )

    @classmethod
    def from_config(cls, config: DashboardConfig, client: BinanceClient | None = None) -> "Dashboard":
        return cls(config, client or BinanceClient(config.exchange))

    async def __aenter__(self) -> "Dashboard":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self.state.subscribe(listener)

    def start(self) -> None:
        self.poller.start()
        self.chart.select_period(self.config.chart.default_period)

    def select_period(self, period: Period | str | Any) -> Period:
        return self.chart.select_period(period)

    def stop(self) -> None:
        self.poller.stop()
        self.chart.close()

    async def aclose(self) -> None:
        self.stop()
        await self.poller.drain()
        await self.chart.drain()
        await self.client.aclose()
        self._logger.info("Dashboard closed", extra={"quotes": self.poller.metrics(), "chart": self.chart.metrics()})

    def metrics(self) -> Dict[str, Any]:
        return {"quotes": self.poller.metrics(), "chart": self.chart.metrics()}
