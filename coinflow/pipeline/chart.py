"""Candle pipeline driven by period selection.

Each :meth:`ChartPipeline.select_period` call supersedes the previous one:
the prior fetch task is cancelled and, should its result still arrive, the
generation check discards it. Only the most recently requested period ever
reaches the view model.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict

from coinflow.core.enums import Period
from coinflow.core.errors import MarketDataError, StaleResultError
from coinflow.data_feed.candles import CandleFetcher
from coinflow.runtime.state import DashboardState

from .fallback import FallbackPolicy

LOGGER = logging.getLogger(__name__)


class ChartPipeline:
    """Fetch candles once per period change (last period wins)."""

    def __init__(
        self,
        *,
        fetcher: CandleFetcher,
        policy: FallbackPolicy,
        state: DashboardState,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._policy = policy
        self._state = state
        self._logger = logger or LOGGER
        self._generation = 0
        self._closed = False
        self._task: asyncio.Task | None = None

        self.fetches_applied = 0
        self.fetches_failed = 0
        self.fetches_discarded = 0

    @property
    def generation(self) -> int:
        return self._generation

    def select_period(self, period: Period | str | Any) -> Period:
        """Start loading ``period`` (unknown values fall back to 1D).

        Once the pipeline is closed the request is ignored and the current
        period is returned unchanged.
        """

        if self._closed:
            self._logger.debug("Ignoring period selection on closed chart pipeline", extra={"period": str(period)})
            return self._state.period
        resolved = Period.from_value(period)
        self._generation += 1
        generation = self._generation
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._policy.begin_candles(self._state, resolved)
        self._task = asyncio.get_running_loop().create_task(
            self._load(resolved, generation),
            name=f"candles-{resolved.value}-{generation}",
        )
        return resolved

    def refresh(self) -> Period:
        return self.select_period(self._state.period)

    def close(self) -> None:
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def drain(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)

    def metrics(self) -> Dict[str, int | float]:
        return {
            "generation": self._generation,
            "fetches_applied": self.fetches_applied,
            "fetches_failed": self.fetches_failed,
            "fetches_discarded": self.fetches_discarded,
            "last_latency_ms": round(self._fetcher.last_latency_ms, 3),
        }

    def _ensure_current(self, generation: int) -> None:
        if self._closed:
            raise StaleResultError("chart pipeline is closed")
        if generation != self._generation:
            raise StaleResultError(f"candle request {generation} superseded by {self._generation}")

    async def _load(self, period: Period, generation: int) -> None:
        outcome: Exception | None = None
        series = None
        try:
            series = await self._fetcher.fetch_candles(period)
        except asyncio.CancelledError:
            self.fetches_discarded += 1
            raise
        except MarketDataError as exc:
            outcome = exc
        except Exception as exc:
            self._logger.exception("Unexpected error while loading candles")
            outcome = exc

        try:
            self._ensure_current(generation)
        except StaleResultError as exc:
            self.fetches_discarded += 1
            self._logger.debug("Discarding candle result: %s", exc)
            return

        if outcome is not None or series is None:
            self.fetches_failed += 1
            self._policy.apply_candle_failure(self._state, period, outcome or MarketDataError("empty candle result"))
            return
        self.fetches_applied += 1
        self._policy.apply_candles(self._state, series)
