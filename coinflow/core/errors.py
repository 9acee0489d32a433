"""Error hierarchy shared by the dashboard subsystems.

Pipelines distinguish between failures that degrade a single cycle (transport,
payload) and results that are simply no longer wanted (stale). None of these
are fatal: the pipeline logs them and falls back to the data it already has.
"""
from __future__ import annotations


class CoreError(Exception):
    """Base class for all custom exceptions in the application."""


class ConfigurationError(CoreError):
    """Raised when configuration files are missing or invalid."""


class MarketDataError(CoreError):
    """Raised for failures while fetching or parsing market data."""


class TransportError(MarketDataError):
    """Network failure or non-success HTTP status from the exchange."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PayloadError(MarketDataError):
    """Raised when a response body does not have the expected structure."""


class StaleResultError(CoreError):
    """Raised when a delayed result arrives after teardown or supersession."""


class PipelineStateError(CoreError):
    """Raised on an illegal lifecycle transition (e.g. restarting a stopped poller)."""
