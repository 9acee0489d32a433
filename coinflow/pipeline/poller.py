"""Recurring quote poller.

The poller fires one fetch cycle immediately on :meth:`QuotePoller.start` and
then one per interval. Cycles are independent tasks: the timer never waits for
a previous round-trip, so several cycles can be in flight and whichever
completes last wins. :meth:`QuotePoller.stop` cancels the timer only; cycles
still in flight check liveness before touching the state and discard their
results once the poller is stopped.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Set

from coinflow.core.enums import PollerStatus
from coinflow.core.errors import MarketDataError, PipelineStateError, StaleResultError
from coinflow.core.types import Symbol
from coinflow.data_feed.quotes import QuoteFetcher
from coinflow.runtime.state import DashboardState

from .fallback import FallbackPolicy

LOGGER = logging.getLogger(__name__)


class QuotePoller:
    """Drive :class:`QuoteFetcher` on a fixed cadence (``Idle -> Polling -> Stopped``)."""

    def __init__(
        self,
        *,
        fetcher: QuoteFetcher,
        policy: FallbackPolicy,
        state: DashboardState,
        symbols: Iterable[Symbol],
        interval_sec: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self._fetcher = fetcher
        self._policy = policy
        self._state = state
        self._symbols: List[Symbol] = list(symbols)
        self._interval = interval_sec
        self._logger = logger or LOGGER
        self._status = PollerStatus.IDLE
        self._timer: asyncio.Task | None = None
        self._inflight: Set[asyncio.Task] = set()

        self.cycles_started = 0
        self.cycles_applied = 0
        self.cycles_failed = 0
        self.cycles_discarded = 0
        self.last_latency_ms = 0.0

    @property
    def status(self) -> PollerStatus:
        return self._status

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Fire one cycle now and schedule the recurring timer.

        Must be called from within a running event loop.
        """

        if self._status is PollerStatus.POLLING:
            return
        if self._status is PollerStatus.STOPPED:
            raise PipelineStateError("a stopped poller cannot be restarted")
        loop = asyncio.get_running_loop()
        self._status = PollerStatus.POLLING
        self._spawn_cycle()
        self._timer = loop.create_task(self._run_timer(), name="quote-poller-timer")
        self._logger.info(
            "Quote poller started",
            extra={"symbols": list(self._symbols), "interval_sec": self._interval},
        )

    def stop(self) -> None:
        """Cancel future cycles; in-flight cycles will discard their results."""

        if self._status is PollerStatus.STOPPED:
            return
        self._status = PollerStatus.STOPPED
        if self._timer is not None:
            self._timer.cancel()
        self._logger.info("Quote poller stopped", extra={"inflight": len(self._inflight)})

    async def drain(self) -> None:
        """Wait for the timer and every in-flight cycle to finish."""

        pending = list(self._inflight)
        if self._timer is not None:
            pending.append(self._timer)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def metrics(self) -> Dict[str, int | float | str]:
        return {
            "status": self._status.value,
            "cycles_started": self.cycles_started,
            "cycles_applied": self.cycles_applied,
            "cycles_failed": self.cycles_failed,
            "cycles_discarded": self.cycles_discarded,
            "inflight": len(self._inflight),
            "last_latency_ms": round(self.last_latency_ms, 3),
            "fetch_latency_ms": round(self._fetcher.last_latency_ms, 3),
        }

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------
    async def _run_timer(self) -> None:
        while self._status is PollerStatus.POLLING:
            await asyncio.sleep(self._interval)
            if self._status is PollerStatus.POLLING:
                self._spawn_cycle()

    def _spawn_cycle(self) -> asyncio.Task:
        task = asyncio.create_task(self._cycle(), name=f"quote-cycle-{self.cycles_started + 1}")
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def _ensure_live(self) -> None:
        if self._status is not PollerStatus.POLLING:
            raise StaleResultError("quote poller is no longer polling")

    async def _cycle(self) -> None:
        self.cycles_started += 1
        try:
            self._ensure_live()
        except StaleResultError:
            self.cycles_discarded += 1
            return
        self._policy.begin_quotes(self._state)
        start = time.perf_counter()
        outcome: Exception | None = None
        snapshots = None
        try:
            snapshots = await self._fetcher.fetch_quotes(self._symbols)
        except MarketDataError as exc:
            outcome = exc
        except Exception as exc:
            self._logger.exception("Unexpected error in quote cycle")
            outcome = exc
        self.last_latency_ms = (time.perf_counter() - start) * 1_000.0

        try:
            self._ensure_live()
        except StaleResultError as exc:
            self.cycles_discarded += 1
            self._logger.debug("Discarding quote result: %s", exc)
            return

        if outcome is not None or snapshots is None:
            self.cycles_failed += 1
            self._policy.apply_quote_failure(self._state, outcome or MarketDataError("empty quote result"))
            return
        self.cycles_applied += 1
        self._policy.apply_quotes(self._state, snapshots)
