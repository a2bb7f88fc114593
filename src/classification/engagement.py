"""
engagement.py
=============
Engagement classification of protocols by transactions per user.

Buckets
-------
* ``high_concentration`` : tx_per_user >  threshold
* ``healthy_engagement`` : tx_per_user <= threshold, or non-finite

A protocol with no users has ``NaN`` for ``tx_per_user``; it represents
zero realised throughput and is counted as healthy, so the two buckets
always add up to ``total_protocols``.

Rounding mode
-------------
By default ratios are compared at full float precision.  With
``legacy_rounding=True`` the ratio is first rounded half-up to
``precision`` decimals, matching dashboards that format the ratio as a
fixed-point string and re-read it before comparing.  The two modes differ
only for ratios within half a unit of the last decimal above the
threshold (e.g. 100.004).
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from src.models.engagement import EngagementStats, ProtocolSummary, is_finite

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 100.0


def round_half_up(value: float, precision: int) -> float:
    """Round ``value`` to ``precision`` decimals, ties away from zero."""
    if not is_finite(value):
        return value
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


class EngagementClassifier:
    """
    Partition protocol summaries into high-concentration and healthy
    buckets.

    Parameters
    ----------
    threshold : float
        tx/user ceiling for healthy engagement (inclusive).
    precision : int
        Decimals kept when ``legacy_rounding`` is enabled.
    legacy_rounding : bool
        Round ratios before comparing instead of using them as-is.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        precision: int = 2,
        legacy_rounding: bool = False,
    ) -> None:
        self.threshold = float(threshold)
        self.precision = int(precision)
        self.legacy_rounding = bool(legacy_rounding)

    def is_high_concentration(self, summary: ProtocolSummary) -> bool:
        """``True`` when the protocol's tx/user ratio is above the threshold."""
        ratio = summary.tx_per_user
        if not is_finite(ratio):
            return False
        if self.legacy_rounding:
            ratio = round_half_up(ratio, self.precision)
        return ratio > self.threshold

    def classify(self, protocols: Sequence[ProtocolSummary]) -> EngagementStats:
        """
        Count protocols per bucket.

        Returns
        -------
        EngagementStats
            All zero for an empty sequence.
        """
        high = sum(1 for p in protocols if self.is_high_concentration(p))
        total = len(protocols)
        stats = EngagementStats(
            total_protocols=total,
            high_concentration=high,
            healthy_engagement=total - high,
        )
        logger.info(
            "classify | total=%d high=%d healthy=%d threshold=%.2f legacy_rounding=%s",
            stats.total_protocols,
            stats.high_concentration,
            stats.healthy_engagement,
            self.threshold,
            self.legacy_rounding,
        )
        return stats
