"""
temporal_aggregator.py
======================
Per-day activity summaries.

Records are grouped by calendar date.  ``protocols_count`` is the number of
rows sharing the date (duplicate namespaces count twice).  Output is sorted
ascending by the underlying date, never by the display label; rows without
a usable date form a single trailing ``"unknown"`` group.
"""

from __future__ import annotations

import logging
from typing import Sequence

import pandas as pd

from src.aggregation.frame import exact_sum, records_to_frame, safe_ratio
from src.models.engagement import DailySummary, RawRecord

logger = logging.getLogger(__name__)

UNKNOWN_DATE_LABEL = "unknown"


class TemporalAggregator:
    """
    Group records by day.

    Parameters
    ----------
    display_date_format : str
        ``strftime`` pattern used for the ``date`` display label.
    """

    def __init__(self, display_date_format: str = "%Y-%m-%d") -> None:
        self.display_date_format = display_date_format

    def aggregate(self, records: Sequence[RawRecord]) -> tuple[DailySummary, ...]:
        """
        Build one ``DailySummary`` per distinct date, ascending by date.
        """
        if not records:
            return ()

        df = records_to_frame(records)
        grouped = (
            df.groupby("date", sort=False, dropna=False)
            .agg(
                total_txs=("daily_incoming_txs", exact_sum),
                total_users=("daily_active_users", exact_sum),
                protocols_count=("namespace", "size"),
            )
            .reset_index()
        )
        grouped["avg_tx_per_user"] = safe_ratio(
            grouped["total_txs"], grouped["total_users"]
        )
        grouped = grouped.sort_values("date", na_position="last", kind="stable")

        summaries = tuple(
            DailySummary(
                day=None if pd.isna(row.date) else row.date.date(),
                date=self._label(row.date),
                total_txs=int(row.total_txs),
                total_users=int(row.total_users),
                avg_tx_per_user=float(row.avg_tx_per_user),
                protocols_count=int(row.protocols_count),
            )
            for row in grouped.itertuples(index=False)
        )

        logger.info("aggregate | records=%d days=%d", len(records), len(summaries))
        return summaries

    def _label(self, ts: pd.Timestamp) -> str:
        if pd.isna(ts):
            return UNKNOWN_DATE_LABEL
        return ts.strftime(self.display_date_format)
