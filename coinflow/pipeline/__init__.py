"""Polling, fallback and period-selection pipelines."""

from .chart import ChartPipeline
from .dashboard import Dashboard
from .fallback import FallbackPolicy
from .poller import QuotePoller

__all__ = ["ChartPipeline", "Dashboard", "FallbackPolicy", "QuotePoller"]
