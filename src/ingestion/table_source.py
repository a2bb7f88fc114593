"""
table_source.py
===============
Retrieval of the raw activity table.

The parser only needs the text content, so this module hides where it
comes from: an ``http(s)://`` location is fetched with ``requests``;
anything else is treated as a local file path.

There is no retry policy.  Any failure is raised as ``FetchError`` and is
terminal for that load attempt; the caller may trigger a fresh load.
"""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from src.errors import FetchError, ParseError

logger = logging.getLogger(__name__)

_HTTP_SCHEMES = ("http://", "https://")


class TableSource:
    """
    Fetch the raw CSV text for one load.

    Parameters
    ----------
    location : str | Path
        URL or filesystem path of the table.
    timeout : float
        Seconds to wait for an HTTP response (ignored for local files).
    """

    def __init__(self, location: str | Path, timeout: float = 10.0) -> None:
        self.location = str(location)
        self.timeout = float(timeout)

    @property
    def is_remote(self) -> bool:
        return self.location.lower().startswith(_HTTP_SCHEMES)

    def fetch(self) -> str:
        """
        Return the table text.

        Raises
        ------
        FetchError
            On network/storage failure or a non-success HTTP status.
        """
        if self.is_remote:
            return self._fetch_http()
        return self._fetch_file()

    def _fetch_http(self) -> str:
        try:
            response = requests.get(self.location, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("fetch | url=%s error=%s", self.location, exc)
            raise FetchError(f"Failed to fetch data: {exc}") from exc

        if not response.ok:
            logger.error(
                "fetch | url=%s status=%d", self.location, response.status_code
            )
            raise FetchError(
                f"Failed to fetch data: HTTP {response.status_code} from {self.location}"
            )

        logger.info(
            "fetch | url=%s status=%d bytes=%d",
            self.location,
            response.status_code,
            len(response.content),
        )
        return response.text

    def _fetch_file(self) -> str:
        path = Path(self.location)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("fetch | path=%s error=%s", path, exc)
            raise FetchError(f"Failed to fetch data: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise ParseError(f"{path} is not UTF-8 text: {exc}") from exc

        logger.info("fetch | path=%s chars=%d", path, len(text))
        return text
