"""In-memory view model shared by the pipelines and the render layer."""

from .state import DashboardState, Quote, QuoteSet, StateListener

__all__ = ["DashboardState", "Quote", "QuoteSet", "StateListener"]
