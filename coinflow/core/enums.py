"""Enumerations shared across dashboard subsystems."""
from __future__ import annotations

from enum import Enum
from typing import Any


class Period(str, Enum):
    """User-selectable chart range."""

    INTRADAY = "1D"
    WEEK = "1W"
    MONTH = "1M"
    YEAR = "1Y"

    @classmethod
    def from_value(cls, value: Any) -> "Period":
        """Map raw period values to enum members, defaulting to intraday.

        Unknown values never raise: the chart simply falls back to the 1D range.
        """

        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value or member.name == value:
                return member
        return cls.INTRADAY


class PollerStatus(str, Enum):
    """Lifecycle of a recurring poller."""

    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"
