"""
Load-state variants exposed to the presentation layer.

A load moves ``Idle -> Loading -> Ready | Failed``.  Each state is its own
frozen type, so a result can only exist on ``Ready`` and an error message
only on ``Failed``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from src.errors import ErrorKind
from src.models.engagement import DashboardResult


@dataclass(frozen=True)
class Idle:
    """No load has been triggered yet."""


@dataclass(frozen=True)
class Loading:
    """A fetch from ``source`` is in flight."""

    source: str


@dataclass(frozen=True)
class Ready:
    """The last load completed and produced ``result``."""

    result: DashboardResult


@dataclass(frozen=True)
class Failed:
    """The last load stopped at fetch or parse; no partial result is kept."""

    kind: ErrorKind
    message: str


LoadState = Union[Idle, Loading, Ready, Failed]
