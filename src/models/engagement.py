"""
engagement.py
=============
Immutable value objects shared by every stage of the pipeline.

All models are frozen dataclasses: each stage consumes an immutable input
and builds a new immutable output.  Derived objects keep no reference back
to the ``RawRecord`` rows they were computed from.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Mapping

import pandas as pd


@dataclass(frozen=True)
class RawRecord:
    """One typed row of the input table.

    Args:
        namespace: Protocol/application identifier (exact-match group key).
        date: Calendar day of the row, ``None`` when missing or unparseable.
        daily_incoming_txs: Non-negative transaction count, ``None`` if missing.
        daily_active_users: Non-negative user count, ``None`` if missing.
        extra: Any additional columns, type-inferred (read-only mapping).
    """
    namespace: str
    date: date | None
    daily_incoming_txs: int | None
    daily_active_users: int | None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class ProtocolSummary:
    """Per-namespace totals and engagement ratios.

    ``tx_per_user`` and ``tx_concentration`` are ``NaN`` when the protocol
    recorded no users at all.
    """
    namespace: str
    total_txs: int
    total_users: int
    days_active: int
    avg_daily_users: float
    tx_per_user: float
    tx_concentration: float


@dataclass(frozen=True)
class DailySummary:
    """Per-day totals.

    ``day`` is the sort key; ``date`` is only the display label.
    ``protocols_count`` counts rows for the day, not distinct namespaces.
    """
    day: date | None
    date: str
    total_txs: int
    total_users: int
    avg_tx_per_user: float
    protocols_count: int


@dataclass(frozen=True)
class EngagementStats:
    """Protocol counts per engagement bucket."""

    total_protocols: int = 0
    high_concentration: int = 0
    healthy_engagement: int = 0


@dataclass(frozen=True)
class DashboardResult:
    """Everything the presentation layer needs from one load."""
    protocols: tuple[ProtocolSummary, ...]
    daily: tuple[DailySummary, ...]
    engagement: EngagementStats
    record_count: int = 0

    def to_frames(self) -> dict[str, pd.DataFrame]:
        """
        Return the result sets as DataFrames keyed ``protocols``, ``daily``
        and ``engagement``.  Row order matches the sorted sequences.
        """
        protocol_cols = list(ProtocolSummary.__dataclass_fields__)
        daily_cols = list(DailySummary.__dataclass_fields__)
        return {
            "protocols": pd.DataFrame(
                [asdict(p) for p in self.protocols], columns=protocol_cols
            ),
            "daily": pd.DataFrame(
                [asdict(d) for d in self.daily], columns=daily_cols
            ),
            "engagement": pd.DataFrame([asdict(self.engagement)]),
        }


def is_finite(value: float) -> bool:
    """``True`` for real, finite ratios (``NaN`` and infinities excluded)."""
    return value is not None and math.isfinite(value)
