"""
table_parser.py
===============
Convert raw delimited text into an ordered tuple of typed ``RawRecord``
objects.

Required header columns
-----------------------
namespace           : str   - protocol identifier
date                : date  - ISO-8601 or otherwise parseable date string
daily_incoming_txs  : int   - non-negative transaction count
daily_active_users  : int   - non-negative active-user count

Coercion rules
--------------
* Cells are read as raw strings; types are assigned per column, never by
  inspecting the cell at runtime.
* ``namespace`` is stripped; a missing value becomes ``""``.
* ``date`` keeps the calendar day as written (a UTC offset does not move
  it to another day); values that cannot be parsed become ``None``.
* Count columns accept non-negative integral numbers up to the int64
  maximum (``"12"``, ``"12.0"``, ``"1e3"``), parsed exactly.  Anything
  else becomes ``None`` and contributes zero to downstream sums.
* Extra columns go through ``infer_scalar``: ``"true"``/``"false"`` become
  booleans, full numeric strings become int/float, the rest stay strings.
* Blank lines and rows whose cells are all empty are skipped.
* Rows with too many fields are truncated to the header width; rows with
  too few fields get ``None`` for the trailing fields.  Both are counted
  in a single WARNING.

Only input that is not a table at all (no header row, unreadable
tokens, missing required columns) raises ``ParseError``.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import re
import warnings
from datetime import date
from decimal import Decimal
from types import MappingProxyType
from typing import Any

import pandas as pd

from src.errors import ParseError
from src.models.engagement import RawRecord

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("namespace", "date", "daily_incoming_txs", "daily_active_users")
COUNT_COLUMNS = ("daily_incoming_txs", "daily_active_users")

_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_INT_RE = re.compile(r"^[+-]?\d+$")
# counts above the int64 range are treated as malformed
_MAX_COUNT = 2**63 - 1


def _clean_cell(value: Any) -> str | None:
    """Stripped cell text, ``None`` for missing or blank cells."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def infer_scalar(value: Any) -> Any:
    """
    Assign a type to a single free-form cell.

    Returns ``None`` for empty cells, ``bool`` for ``true``/``false``
    (case-insensitive), ``int``/``float`` for strings that parse fully as
    numbers, and the stripped string otherwise.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if _INT_RE.match(text):
        return int(text)
    if _NUMBER_RE.match(text):
        return float(text)
    return text


class TableParser:
    """
    Parse a CSV export of per-day, per-protocol activity.

    Parameters
    ----------
    delimiter : str
        Field separator (default ``","``).
    """

    def __init__(self, delimiter: str = ",") -> None:
        self.delimiter = delimiter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self, text: str) -> tuple[RawRecord, ...]:
        """
        Parse ``text`` into records, preserving row order.

        Parameters
        ----------
        text : str
            Raw delimited text with a header row.

        Returns
        -------
        tuple[RawRecord, ...]
            One record per non-empty data row.  Empty for a header-only
            table.

        Raises
        ------
        ParseError
            If ``text`` has no header row, cannot be tokenised, or lacks a
            required column.
        """
        df, long_rows = self._read_frame(text)
        df = self._drop_empty_rows(df)

        short_rows = int(df.isna().any(axis=1).sum())
        if long_rows or short_rows:
            logger.warning(
                "parse | coerced malformed rows | too_long=%d too_short=%d",
                long_rows,
                short_rows,
            )

        namespaces = df["namespace"].map(
            lambda v: v.strip() if isinstance(v, str) else ""
        )
        dates = self._coerce_dates(df["date"])
        counts = {col: self._coerce_counts(df[col], col) for col in COUNT_COLUMNS}
        extra_cols = [c for c in df.columns if c not in REQUIRED_COLUMNS]

        records = []
        for pos in range(len(df)):
            extra = {col: infer_scalar(df[col].iat[pos]) for col in extra_cols}
            records.append(
                RawRecord(
                    namespace=namespaces.iat[pos],
                    date=dates[pos],
                    daily_incoming_txs=counts["daily_incoming_txs"][pos],
                    daily_active_users=counts["daily_active_users"][pos],
                    extra=MappingProxyType(extra),
                )
            )

        logger.info(
            "parse | rows=%d columns=%d extra_columns=%s",
            len(records),
            len(df.columns),
            extra_cols,
        )
        return tuple(records)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_frame(self, text: str) -> tuple[pd.DataFrame, int]:
        """
        Tokenise ``text`` into an all-string DataFrame.

        Returns the frame and the number of data rows that carried more
        fields than the header (their surplus fields are discarded).
        """
        if text is None or not text.strip():
            raise ParseError("Input has no header row.")

        try:
            header = pd.read_csv(
                io.StringIO(text), sep=self.delimiter, nrows=0, dtype=str
            )
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
            raise ParseError(f"Input is not a delimited table: {exc}") from exc

        columns = [str(c).strip() for c in header.columns]
        missing = [c for c in REQUIRED_COLUMNS if c not in columns]
        if missing:
            raise ParseError(f"Header row missing required columns: {missing}")

        try:
            with warnings.catch_warnings():
                # surplus fields are counted and logged below
                warnings.simplefilter("ignore", pd.errors.ParserWarning)
                df = pd.read_csv(
                    io.StringIO(text),
                    sep=self.delimiter,
                    dtype=str,
                    keep_default_na=False,
                    skip_blank_lines=True,
                    index_col=False,
                    engine="python",
                )
        except (pd.errors.EmptyDataError, pd.errors.ParserError) as exc:
            raise ParseError(f"Input is not a delimited table: {exc}") from exc

        df.columns = columns
        long_rows = sum(
            1
            for fields in csv.reader(io.StringIO(text), delimiter=self.delimiter)
            if len(fields) > len(columns)
        )
        return df, long_rows

    @staticmethod
    def _drop_empty_rows(df: pd.DataFrame) -> pd.DataFrame:
        """Remove rows where every cell is missing or whitespace."""
        blank = pd.Series(True, index=df.index)
        for col in df.columns:
            blank &= df[col].map(
                lambda v: not isinstance(v, str) or not v.strip()
            ).astype(bool)
        if blank.any():
            logger.debug("parse | skipped %d empty rows", int(blank.sum()))
        return df.loc[~blank].reset_index(drop=True)

    @staticmethod
    def _parse_day(value: str | None) -> date | None:
        """Calendar day as written; any UTC offset is kept, not applied."""
        if value is None:
            return None
        ts = pd.to_datetime(value, errors="coerce")
        return None if pd.isna(ts) else ts.date()

    @staticmethod
    def _parse_count(value: str | None) -> int | None:
        """Exact non-negative integer, or ``None``."""
        if value is None:
            return None
        if _INT_RE.match(value):
            try:
                count = int(value)
            except ValueError:
                # beyond the interpreter's int string-conversion limit
                return None
        elif _NUMBER_RE.match(value):
            number = Decimal(value)
            if number > _MAX_COUNT:
                return None
            if number != number.to_integral_value():
                return None
            count = int(number)
        else:
            return None
        return count if 0 <= count <= _MAX_COUNT else None

    def _coerce_dates(self, series: pd.Series) -> list:
        """Parse a column of date strings to ``datetime.date`` or ``None``."""
        cleaned = series.map(_clean_cell)
        dates = [self._parse_day(v) for v in cleaned]

        unparsed = int(cleaned.notna().sum()) - sum(d is not None for d in dates)
        if unparsed:
            logger.warning("parse | %d unparseable date values set to None", unparsed)
        return dates

    def _coerce_counts(self, series: pd.Series, name: str) -> list:
        """Coerce a count column to non-negative ``int`` or ``None``."""
        cleaned = series.map(_clean_cell)
        counts = [self._parse_count(v) for v in cleaned]

        rejected = int(cleaned.notna().sum()) - sum(c is not None for c in counts)
        if rejected:
            logger.warning(
                "parse | %d invalid %s values set to None", rejected, name
            )
        return counts
