# pyright: reportMissingImports=false, reportMissingModuleSource=false
from __future__ import annotations

import asyncio
import gzip
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import orjson
import requests
import structlog

from ..config import CalculatorConfig

logger = structlog.get_logger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
USER_AGENT = "nbacc season loader"


class SeasonSource(Protocol):
    async def fetch(self, year: int) -> bytes:
        ...

    def location(self, year: int) -> str:
        ...


def decode_payload(raw: bytes) -> Dict[str, Any]:
    if raw[:2] == _GZIP_MAGIC:
        raw = gzip.decompress(raw)
    data = orjson.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"season payload must be a JSON object, got {type(data).__name__}")
    return data


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept-Encoding": "identity"})
    return session


class DirectorySeasonSource:
    def __init__(self, root: str | Path, filename_template: str) -> None:
        self.root = Path(root)
        self.filename_template = filename_template

    def location(self, year: int) -> str:
        return str(self.root / self.filename_template.format(year=year))

    async def fetch(self, year: int) -> bytes:
        path = Path(self.location(year))
        logger.debug("season_read", year=year, path=str(path))
        return await asyncio.to_thread(path.read_bytes)

    async def aclose(self) -> None:
        return None


class HttpSeasonSource:
    """Season files under an http(s) base URL.

    Blocking ``requests`` calls run in a worker thread so concurrent years
    still overlap on the event loop.
    """

    def __init__(
        self,
        base_url: str,
        filename_template: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.filename_template = filename_template
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or build_session()

    def location(self, year: int) -> str:
        return f"{self.base_url}/{self.filename_template.format(year=year)}"

    def _get(self, url: str) -> bytes:
        response = self._session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    async def fetch(self, year: int) -> bytes:
        url = self.location(year)
        logger.debug("season_fetch", year=year, url=url)
        return await asyncio.to_thread(self._get, url)

    async def aclose(self) -> None:
        if self._owns_session:
            self._session.close()

    async def __aenter__(self) -> "HttpSeasonSource":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def build_source(config: CalculatorConfig) -> DirectorySeasonSource | HttpSeasonSource:
    if config.season_base.startswith(("http://", "https://")):
        return HttpSeasonSource(
            config.season_base,
            config.filename_template,
            timeout=config.request_timeout_seconds,
        )
    return DirectorySeasonSource(config.season_base, config.filename_template)
