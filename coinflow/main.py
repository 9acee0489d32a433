from __future__ import annotations

import asyncio
import logging
import signal
import sys
from pathlib import Path

from coinflow.config.loader import resolve_dashboard_config
from coinflow.config.models import DashboardConfig
from coinflow.interfaces import ConsoleRenderer
from coinflow.pipeline import Dashboard
from coinflow.telemetry import configure_logging


async def run(config: DashboardConfig, logger: logging.Logger) -> None:
    dashboard = Dashboard.from_config(config)
    dashboard.subscribe(ConsoleRenderer(config, logger.getChild("render")))

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _request_stop(signum: int) -> None:
        logger.info("Received signal", extra={"signal": signum})
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, _request_stop, signum)
        except NotImplementedError:  # pragma: no cover - platforms without signal support
            signal.signal(signum, lambda num, _: loop.call_soon_threadsafe(_request_stop, num))

    dashboard.start()
    try:
        await stop_event.wait()
    finally:
        await dashboard.aclose()
        logger.info("Shutdown complete")


def main() -> None:
    project_root = Path(__file__).resolve().parents[1]
    config = resolve_dashboard_config(project_root / "config" / "dashboard.yml")
    log_dir = Path(config.telemetry.log_dir).resolve() if config.telemetry.log_dir else None
    logger = configure_logging(log_dir=log_dir, level=config.telemetry.log_level)
    logger.info(
        "Bootstrapping dashboard",
        extra={"symbols": config.tracked_symbols, "endpoint": config.exchange.rest_endpoint},
    )
    try:
        asyncio.run(run(config, logger))
    except KeyboardInterrupt:  # pragma: no cover - manual exit
        logger.info("Interrupted by user")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - top-level safety
        print(f"Fatal error: {exc}", file=sys.stderr)
        raise
