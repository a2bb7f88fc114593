"""
Shared helpers for turning ``RawRecord`` sequences into DataFrames and
computing zero-safe ratios.

Count columns hold Python ``int`` objects (``dtype=object``) and are
reduced with ``exact_sum``, so totals never wrap at the int64 boundary.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import pandas as pd

from src.models.engagement import RawRecord


def records_to_frame(records: Sequence[RawRecord]) -> pd.DataFrame:
    """
    Build a DataFrame with one row per record, in input order.

    Missing counts become 0 so that they contribute nothing to sums;
    missing dates become ``NaT``.
    """
    return pd.DataFrame(
        {
            "namespace": pd.Series([r.namespace for r in records], dtype=object),
            "date": pd.to_datetime(
                pd.Series([r.date for r in records], dtype=object)
            ),
            "daily_incoming_txs": pd.Series(
                [r.daily_incoming_txs or 0 for r in records], dtype=object
            ),
            "daily_active_users": pd.Series(
                [r.daily_active_users or 0 for r in records], dtype=object
            ),
        }
    )


def exact_sum(values: Iterable[int]) -> int:
    """Arbitrary-precision integer sum of a group's counts."""
    return sum((int(v) for v in values), 0)


def safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    """Element-wise ``numerator / denominator``; ``NaN`` where the denominator is 0."""
    num = numerator.astype(float)
    den = denominator.astype(float)
    return num / den.where(den > 0)
