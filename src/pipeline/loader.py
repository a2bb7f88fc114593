"""
loader.py
=========
End-to-end load pipeline for the SEI engagement dashboard.

Architecture overview
---------------------
1. ``TableSource`` (src/ingestion/table_source.py) fetches the raw CSV.
2. ``TableParser`` (src/ingestion/table_parser.py) builds typed records.
3. ``ProtocolAggregator`` and ``TemporalAggregator`` consume the same
   record tuple independently.
4. ``EngagementClassifier`` buckets the protocol summaries.
5. The three result sets are wrapped in a ``DashboardResult`` and exposed
   through the ``LoadState`` variant.

Fetch and parse failures end the load in ``Failed`` with a message and an
``ErrorKind``; no partial result is ever produced.  Degenerate data (zero
users, empty table) loads normally.

Typical usage
-------------
::

    pipeline = EngagementPipeline("config/config.yaml")
    state = pipeline.load()
    if isinstance(state, Ready):
        print(state.result.engagement)
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from src.aggregation.protocol_aggregator import ProtocolAggregator
from src.aggregation.temporal_aggregator import TemporalAggregator
from src.classification.engagement import EngagementClassifier
from src.errors import EngagementError
from src.ingestion.table_parser import TableParser
from src.ingestion.table_source import TableSource
from src.models.engagement import DashboardResult
from src.pipeline.state import Failed, Idle, Loading, LoadState, Ready

logger = logging.getLogger(__name__)


def load_config(config_path: str | Path) -> dict:
    """Parse YAML config and return as a nested dict."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with path.open() as fh:
        cfg = yaml.safe_load(fh)
    logger.debug("Config loaded from %s", path)
    return cfg


class EngagementPipeline:
    """
    Fetch, parse, aggregate and classify one activity table.

    Parameters
    ----------
    config_path : str | Path
        Path to ``config/config.yaml``.  The following keys are consumed:

        * ``source.location``              – CSV path or http(s) URL
        * ``source.timeout_seconds``       – HTTP timeout
        * ``source.delimiter``             – field separator
        * ``engagement.threshold``         – tx/user ceiling for healthy
        * ``engagement.precision``         – decimals for legacy rounding
        * ``engagement.legacy_rounding``   – round ratios before comparing
        * ``dashboard.display_date_format``– daily label format
    source : str | Path | None
        Overrides ``source.location`` when given.

    Attributes
    ----------
    state : LoadState
        Current load state; ``Idle`` until ``load()`` is called.
    """

    def __init__(
        self,
        config_path: str | Path = "config/config.yaml",
        source: str | Path | None = None,
    ) -> None:
        self.cfg = load_config(config_path)
        src_cfg = self.cfg["source"]
        eng_cfg = self.cfg["engagement"]
        dash_cfg = self.cfg["dashboard"]

        self.source = TableSource(
            source if source is not None else src_cfg["location"],
            timeout=float(src_cfg["timeout_seconds"]),
        )
        self.parser = TableParser(delimiter=src_cfg["delimiter"])
        self.protocol_aggregator = ProtocolAggregator()
        self.temporal_aggregator = TemporalAggregator(
            display_date_format=dash_cfg["display_date_format"]
        )
        self.classifier = EngagementClassifier(
            threshold=float(eng_cfg["threshold"]),
            precision=int(eng_cfg["precision"]),
            legacy_rounding=bool(eng_cfg["legacy_rounding"]),
        )
        self._state: LoadState = Idle()

        logger.info(
            "EngagementPipeline initialised | source=%s threshold=%.2f",
            self.source.location,
            self.classifier.threshold,
        )

    @property
    def state(self) -> LoadState:
        return self._state

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self, text: str) -> DashboardResult:
        """
        Pure transform: raw table text → ``DashboardResult``.

        Re-running on the same text yields an equal result.

        Raises
        ------
        ParseError
            If ``text`` is not a delimited table.
        """
        records = self.parser.parse(text)
        protocols = self.protocol_aggregator.aggregate(records)
        daily = self.temporal_aggregator.aggregate(records)
        engagement = self.classifier.classify(protocols)
        return DashboardResult(
            protocols=protocols,
            daily=daily,
            engagement=engagement,
            record_count=len(records),
        )

    def load(self) -> LoadState:
        """
        Run one full load and return the terminal state.

        ``FetchError`` and ``ParseError`` are captured as ``Failed``; any
        other exception resets the pipeline to ``Idle`` and propagates.

        Raises
        ------
        RuntimeError
            If a load is already in progress on this pipeline.
        """
        if isinstance(self._state, Loading):
            raise RuntimeError("A load is already in progress.")

        self._state = Loading(source=self.source.location)
        logger.info("load | started source=%s", self.source.location)
        try:
            text = self.source.fetch()
            result = self.run(text)
        except EngagementError as exc:
            logger.error("load | failed kind=%s error=%s", exc.kind.value, exc)
            self._state = Failed(kind=exc.kind, message=str(exc))
        except Exception:
            self._state = Idle()
            raise
        else:
            logger.info(
                "load | ready records=%d protocols=%d days=%d",
                result.record_count,
                len(result.protocols),
                len(result.daily),
            )
            self._state = Ready(result=result)
        return self._state

