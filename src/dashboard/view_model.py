"""
view_model.py
=============
Declarative view model for the SEI protocol engagement dashboard.

``DashboardViewBuilder`` turns a ``DashboardResult`` into the data each
dashboard panel consumes, without rendering anything:

* **KPI tiles** – healthy / total protocols, high-concentration count,
  total active protocols.
* **Engagement scatter** – total users vs tx/user, bubble size = total txs.
* **Top protocols bar** – the ``top_n`` protocols by transaction volume.
* **Daily trend line** – average tx/user and active protocol rows per day.

The full view can be exported as a JSON file via
``export_view(result, output_path)``.  Non-finite ratios are written as
``null``.

Typical usage
-------------
::

    builder = DashboardViewBuilder(top_n=10, threshold=100)
    view = builder.build(result)
    builder.export_view(result, "reports/dashboard_view.json")
"""

from __future__ import annotations

import datetime
import json
import logging
from pathlib import Path
from typing import Any

from src.models.engagement import DashboardResult, is_finite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"


def _number(value: float, precision: int = 2) -> float | None:
    """Round finite ratios for display; ``None`` for NaN/inf."""
    if not is_finite(value):
        return None
    return round(float(value), precision)


class DashboardViewBuilder:
    """
    Build panel data and chart bindings for the engagement dashboard.

    Parameters
    ----------
    top_n : int
        Number of protocols shown in the top-protocols bar chart.
    threshold : float
        tx/user ceiling quoted in the KPI tile captions.
    precision : int
        Decimals kept for ratios in the exported view.
    """

    def __init__(self, top_n: int = 10, threshold: float = 100.0, precision: int = 2) -> None:
        self.top_n = int(top_n)
        self.threshold = float(threshold)
        self.precision = int(precision)

    # ------------------------------------------------------------------
    # Panels
    # ------------------------------------------------------------------

    def kpi_tiles(self, result: DashboardResult) -> dict[str, dict[str, Any]]:
        """
        Return the three summary tiles keyed by tile identifier.
        """
        stats = result.engagement
        limit = f"{self.threshold:g}"
        return {
            "protocol_distribution": {
                "label": "Protocol Distribution",
                "value": stats.healthy_engagement,
                "denominator": stats.total_protocols,
                "caption": f"Protocols with healthy engagement (<={limit} tx/user)",
            },
            "high_concentration": {
                "label": "High Concentration Protocols",
                "value": stats.high_concentration,
                "caption": f"Protocols with >{limit} tx/user",
                "highlight": "warning",
            },
            "total_protocols": {
                "label": "Total Active Protocols",
                "value": stats.total_protocols,
                "caption": "Protocols with recorded activity",
            },
        }

    def protocol_scatter(self, result: DashboardResult) -> list[dict[str, Any]]:
        """One point per protocol: users on x, tx/user on y, txs as size."""
        return [
            {
                "namespace": p.namespace,
                "total_users": p.total_users,
                "tx_per_user": _number(p.tx_per_user, self.precision),
                "total_txs": p.total_txs,
            }
            for p in result.protocols
        ]

    def top_protocols(self, result: DashboardResult) -> list[dict[str, Any]]:
        """The first ``top_n`` protocols by ``total_txs`` with tooltip fields."""
        return [
            {
                "namespace": p.namespace,
                "total_txs": p.total_txs,
                "total_users": p.total_users,
                "tx_per_user": _number(p.tx_per_user, self.precision),
                "avg_daily_users": _number(p.avg_daily_users, self.precision),
            }
            for p in result.protocols[: self.top_n]
        ]

    def daily_trend(self, result: DashboardResult) -> list[dict[str, Any]]:
        """Daily points in ascending date order."""
        return [
            {
                "date": d.date,
                "day": d.day.isoformat() if d.day is not None else None,
                "avg_tx_per_user": _number(d.avg_tx_per_user, self.precision),
                "protocols_count": d.protocols_count,
                "total_txs": d.total_txs,
                "total_users": d.total_users,
            }
            for d in result.daily
        ]

    # ------------------------------------------------------------------
    # Visualisation mapping
    # ------------------------------------------------------------------

    def get_visualization_mapping(self) -> dict[str, dict[str, Any]]:
        """
        Return a mapping from panel identifier to chart type and field
        bindings.

        Each value carries ``chart_type`` (``"kpi_tile"``, ``"scatter"``,
        ``"bar"`` or ``"line"``) and the field names the renderer reads
        from the matching panel data.
        """
        return {
            "protocol_distribution": {
                "chart_type": "kpi_tile",
                "value_field": "value",
                "denominator_field": "denominator",
            },
            "high_concentration": {
                "chart_type": "kpi_tile",
                "value_field": "value",
            },
            "total_protocols": {
                "chart_type": "kpi_tile",
                "value_field": "value",
            },
            "protocol_scatter": {
                "chart_type": "scatter",
                "x_field": "total_users",
                "y_field": "tx_per_user",
                "size_field": "total_txs",
                "label_field": "namespace",
                "size_range": [50, 400],
            },
            "top_protocols": {
                "chart_type": "bar",
                "x_field": "total_txs",
                "y_field": "namespace",
                "orientation": "horizontal",
                "tooltip_fields": [
                    "total_txs", "total_users", "tx_per_user", "avg_daily_users",
                ],
            },
            "daily_trend": {
                "chart_type": "line",
                "x_field": "date",
                "series": [
                    {"y_field": "avg_tx_per_user", "label": "Avg Tx per User"},
                    {"y_field": "protocols_count", "label": "Active Protocols"},
                ],
            },
        }

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def build(self, result: DashboardResult) -> dict[str, Any]:
        """Assemble every panel plus the visualisation mapping."""
        return {
            "schema_version": SCHEMA_VERSION,
            "record_count": result.record_count,
            "kpi_tiles": self.kpi_tiles(result),
            "protocol_scatter": self.protocol_scatter(result),
            "top_protocols": self.top_protocols(result),
            "daily_trend": self.daily_trend(result),
            "visualization_mapping": self.get_visualization_mapping(),
        }

    def export_view(self, result: DashboardResult, output_path: str | Path) -> Path:
        """
        Serialise the view model to a JSON file.

        Parameters
        ----------
        result : DashboardResult
            Output of a successful load.
        output_path : str | Path
            Destination file path.  Parent directories are created if
            they do not exist.

        Returns
        -------
        Path
            The written file.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        view = self.build(result)
        view["generated_at"] = datetime.datetime.now(datetime.timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

        with output_path.open("w", encoding="utf-8") as fh:
            json.dump(view, fh, indent=2, ensure_ascii=False, allow_nan=False)

        logger.info(
            "export_view | written %d bytes → %s",
            output_path.stat().st_size,
            output_path,
        )
        return output_path
