"""
errors.py
=========
Exception taxonomy for the SEI engagement analytics pipeline.

Only two conditions stop a load: the raw table could not be retrieved
(``FetchError``) or the retrieved text is not a table at all
(``ParseError``).  Degenerate data (zero users, empty table) is never an
error.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Structured error discriminant surfaced alongside the message."""

    FETCH = "fetch"
    PARSE = "parse"


class EngagementError(Exception):
    """Base class for load-terminating pipeline errors."""

    kind: ErrorKind


class FetchError(EngagementError):
    """The raw table could not be retrieved."""

    kind = ErrorKind.FETCH


class ParseError(EngagementError):
    """The retrieved content is not a well-formed delimited table."""

    kind = ErrorKind.PARSE
