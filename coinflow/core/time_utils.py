"""Utilities for dealing with timezones, timestamps and chart labels.

The exchange reports candle open times as epoch milliseconds; the render
layer wants aware datetimes and short axis labels whose granularity depends on
the selected period. The helpers below are the single source of truth for
those conversions.
"""
from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from .enums import Period

DEFAULT_TZ_NAME = "UTC"

_AXIS_FORMATS = {
    Period.INTRADAY: "%H:%M",
    Period.WEEK: "%m/%d %H:%M",
}
_AXIS_FORMAT_DEFAULT = "%m/%d"
_TOOLTIP_FORMAT = "%Y/%m/%d %H:%M"


def get_app_timezone(tz_name: str | None = None) -> ZoneInfo:
    """Return the ZoneInfo object for the configured timezone."""

    target_name = tz_name or DEFAULT_TZ_NAME
    return ZoneInfo(target_name)


def now_utc() -> datetime:
    """Return the current UTC datetime with tzinfo."""

    return datetime.now(timezone.utc)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert an epoch-millisecond value to an aware UTC datetime."""

    return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)


def format_axis_label(timestamp_ms: int, period: Period | str, tz_name: str | None = None) -> str:
    """Return the x-axis label for a candle open time.

    Intraday charts show ``HH:MM``, weekly charts ``MM/DD HH:MM`` and longer
    ranges only ``MM/DD``.
    """

    resolved = Period.from_value(period)
    local = ms_to_datetime(timestamp_ms).astimezone(get_app_timezone(tz_name))
    return local.strftime(_AXIS_FORMATS.get(resolved, _AXIS_FORMAT_DEFAULT))


def format_tooltip_label(timestamp_ms: int, tz_name: str | None = None) -> str:
    """Return the full ``YYYY/MM/DD HH:MM`` label used by chart tooltips."""

    local = ms_to_datetime(timestamp_ms).astimezone(get_app_timezone(tz_name))
    return local.strftime(_TOOLTIP_FORMAT)
