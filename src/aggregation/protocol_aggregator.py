"""
protocol_aggregator.py
======================
Per-protocol engagement summaries.

Records are grouped by exact ``namespace`` match.  For each group:

* ``total_txs``        = Σ daily_incoming_txs
* ``total_users``      = Σ daily_active_users
* ``days_active``      = number of rows in the group
* ``avg_daily_users``  = total_users / days_active
* ``tx_per_user``      = total_txs / total_users
* ``tx_concentration`` = total_txs / (total_users · days_active)

A protocol with no recorded users gets ``NaN`` for both ratios; it never
fails the load.  Output is ranked descending by ``total_txs`` with ties
kept in first-seen order.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from src.aggregation.frame import exact_sum, records_to_frame, safe_ratio
from src.models.engagement import ProtocolSummary, RawRecord

logger = logging.getLogger(__name__)


class ProtocolAggregator:
    """Group records by ``namespace`` and rank protocols by volume."""

    def aggregate(self, records: Sequence[RawRecord]) -> tuple[ProtocolSummary, ...]:
        """
        Build one ``ProtocolSummary`` per distinct namespace.

        Parameters
        ----------
        records : Sequence[RawRecord]
            Parsed table rows.

        Returns
        -------
        tuple[ProtocolSummary, ...]
            Sorted descending by ``total_txs``; empty for empty input.
        """
        if not records:
            return ()

        df = records_to_frame(records)
        grouped = (
            df.groupby("namespace", sort=False)
            .agg(
                total_txs=("daily_incoming_txs", exact_sum),
                total_users=("daily_active_users", exact_sum),
                days_active=("daily_incoming_txs", "size"),
            )
            .reset_index()
        )
        grouped["first_seen"] = np.arange(len(grouped))
        grouped["avg_daily_users"] = (
            grouped["total_users"].astype(float) / grouped["days_active"]
        )
        grouped["tx_per_user"] = safe_ratio(grouped["total_txs"], grouped["total_users"])
        grouped["tx_concentration"] = safe_ratio(
            grouped["total_txs"], grouped["total_users"].astype(float) * grouped["days_active"]
        )

        zero_user = int((grouped["total_users"] == 0).sum())
        if zero_user:
            logger.debug("aggregate | %d protocols with zero users", zero_user)

        ranked = grouped.sort_values(
            ["total_txs", "first_seen"], ascending=[False, True]
        )
        summaries = tuple(
            ProtocolSummary(
                namespace=row.namespace,
                total_txs=int(row.total_txs),
                total_users=int(row.total_users),
                days_active=int(row.days_active),
                avg_daily_users=float(row.avg_daily_users),
                tx_per_user=float(row.tx_per_user),
                tx_concentration=float(row.tx_concentration),
            )
            for row in ranked.itertuples(index=False)
        )

        logger.info(
            "aggregate | records=%d protocols=%d", len(records), len(summaries)
        )
        return summaries
