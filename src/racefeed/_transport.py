"""HTTP transport for circuit geometry documents."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

import aiohttp

from racefeed.config import FeedConfig
from racefeed.exceptions import GeometryFetchError, GeometryParseError
from racefeed.geometry.circuits import geometry_url

_logger = logging.getLogger(__name__)


class GeometrySource(Protocol):
    """Structural geometry source interface used by the projector.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpGeometrySource`) concrete.
    """

    async def fetch(self, track_id: str) -> Any:
        ...


class HttpGeometrySource:
    """Fetches ``<locator>.geojson`` documents over HTTP."""

    def __init__(self, config: FeedConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def url_for(self, track_id: str) -> str:
        return geometry_url(track_id, self._config.geometry_base_url)

    async def fetch(self, track_id: str) -> Any:
        """Fetch and JSON-decode the geometry document for *track_id*.

        Raises
        ------
        GeometryFetchError
            Network failure, timeout, or non-200 status.
        GeometryParseError
            Body is not valid UTF-8 JSON.
        """
        url = self.url_for(track_id)
        _logger.debug("GET %s", url)

        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)
        try:
            async with self._http.get(url, timeout=timeout) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise GeometryFetchError(
                        f"Failed to fetch GeoJSON: {resp.status}",
                        status_code=resp.status,
                        url=url,
                    )
        except GeometryFetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise GeometryFetchError(f"Request to {url} failed: {exc!r}", url=url) from exc

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise GeometryParseError(f"Invalid JSON from {url}: {body[:64]!r}") from exc
