"""Configuration loading and validation package."""

from .loader import load_dashboard_config, resolve_dashboard_config
from .models import (
    ChartConfig,
    DashboardConfig,
    ExchangeConfig,
    QuotesConfig,
    SymbolConfig,
    TelemetryConfig,
)

__all__ = [
    "ChartConfig",
    "DashboardConfig",
    "ExchangeConfig",
    "QuotesConfig",
    "SymbolConfig",
    "TelemetryConfig",
    "load_dashboard_config",
    "resolve_dashboard_config",
]
