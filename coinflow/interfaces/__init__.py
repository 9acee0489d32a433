"""Render-side adapters consuming the dashboard view model."""
from .console import ConsoleRenderer, format_change, format_price

__all__ = ["ConsoleRenderer", "format_change", "format_price"]
