"""Fetch published Google Sheets CSV exports.

Everything upstream of parsing goes through `CsvSource`: "given a URL, return
CSV text". The HTTP source is what runs in production; the file source lets
the CLI build from a local export.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger

# Published sheets shared by every town; rows carry their own town column.
BUSINESS_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/2PACX-1vThi_KiXMZnzjFDN4dbCz8xPTlB8dJnal9NRMd"
    "-_8p2hg6000li5r1bhl5cRugFQyTopHCzHVtGc9VN/pub?gid=246270252&single=true&output=csv"
)
EMERGENCY_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/e/2PACX-1vSaY65eKywzkOD7O_-3RYXbe3lWShkASeR7EuK2"
    "lcv8E0ktarGhFsfYuv7tfvf6aSpbY8BHvM54Yy-t/pub?gid=1137836387&single=true&output=csv"
)


class SourceUnavailable(Exception):
    """A CSV source could not be fetched. Not retried."""

    def __init__(self, url: str, reason: str = ""):
        self.url = url
        self.reason = reason
        super().__init__(f"unable to load {url}" + (f": {reason}" if reason else ""))


class CsvSource(Protocol):
    async def fetch(self, url: str) -> str: ...


class HttpCsvSource:
    """Fetch CSV over HTTP. One request per call, no retries."""

    def __init__(self, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout
        self.transport = transport

    async def fetch(self, url: str) -> str:
        logger.debug("fetching {}", url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                r = await client.get(url)
                r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning("CSV fetch failed: {} -> {}", url, e.response.status_code)
            raise SourceUnavailable(url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("CSV fetch failed: {} ({})", url, e)
            raise SourceUnavailable(url, str(e) or type(e).__name__) from e
        return r.text


class FileCsvSource:
    """Serve CSV from local files, keyed by the URL they stand in for."""

    def __init__(self, paths: dict[str, Path | str]):
        self.paths = {url: Path(p) for url, p in paths.items()}

    async def fetch(self, url: str) -> str:
        path = self.paths.get(url)
        if path is None or not path.exists():
            raise SourceUnavailable(url, "no local file")
        return path.read_text(encoding="utf-8")
