"""Shared type aliases for readability and contract enforcement.

Feed payloads, quotes and candles pass around a handful of primitives
(symbols, exchange pairs, millisecond timestamps). Aliases defined
here keep them from being mixed up across subsystems.
"""
from __future__ import annotations

from typing import Any, Mapping, NewType, Sequence, TypeAlias

Symbol = NewType("Symbol", str)
Pair = NewType("Pair", str)
TimestampMs = NewType("TimestampMs", int)

JSONLike: TypeAlias = Mapping[str, Any]
KlineRow: TypeAlias = Sequence[Any]
