"""Websocket feed client.

Owns one websocket connection, decodes every inbound frame and exposes the
connection status. Malformed frames are yielded as
:class:`~racefeed.ingestion.decode.ParseFailure` results and never raise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from enum import StrEnum
from typing import Any

import aiohttp

from racefeed.exceptions import FeedTransportError, RaceFeedError, ServerReportedError
from racefeed.ingestion.decode import Decoded, DecodeResult, decode_frame
from racefeed.models.messages import ErrorMessage

_logger = logging.getLogger(__name__)

TRANSPORT_ERROR_TEXT = "WebSocket error"


class ConnectionStatus(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class FeedClient:
    """Async websocket client for the race feed.

    Usage::

        async with FeedClient("ws://localhost:8765") as feed:
            async for result in feed.results():
                store.apply_result(result)

    Status follows connection open/close events only. Transport errors and
    server-reported ``error`` messages are recorded in :attr:`last_error`
    without changing the status or closing the connection.
    """

    def __init__(
        self,
        url: str,
        *,
        http_session: aiohttp.ClientSession | None = None,
        heartbeat: float | None = None,
        on_result: Callable[[DecodeResult], None] | None = None,
        on_status: Callable[[ConnectionStatus], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._external_session = http_session is not None
        self._http = http_session
        self._heartbeat = heartbeat
        self._on_result = on_result
        self._on_status = on_status
        self._on_error = on_error
        self._logger = logger or _logger
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._status = ConnectionStatus.CLOSED
        self._last_error: RaceFeedError | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FeedClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def connected(self) -> bool:
        return self._status == ConnectionStatus.OPEN

    @property
    def last_error(self) -> RaceFeedError | None:
        """Most recent transport or server-reported error, cleared on open."""
        return self._last_error

    @property
    def error(self) -> str | None:
        return str(self._last_error) if self._last_error is not None else None

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        self._logger.debug("Feed status %s -> %s url=%s", self._status, status, self._url)
        self._status = status
        if self._on_status is not None:
            self._on_status(status)

    def _record_error(self, error: RaceFeedError) -> None:
        self._last_error = error
        if self._on_error is not None:
            self._on_error(str(error))

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the websocket.

        Raises
        ------
        FeedTransportError
            The connection could not be established. The error is also
            recorded in :attr:`last_error`.
        """
        if self._ws is not None and not self._ws.closed:
            return
        if self._http is None:
            self._http = aiohttp.ClientSession()

        self._set_status(ConnectionStatus.CONNECTING)
        try:
            self._ws = await self._http.ws_connect(self._url, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._logger.warning("Feed connect failed url=%s: %r", self._url, exc)
            error = FeedTransportError(TRANSPORT_ERROR_TEXT, url=self._url)
            self._record_error(error)
            self._set_status(ConnectionStatus.CLOSED)
            raise error from exc

        self._last_error = None
        self._set_status(ConnectionStatus.OPEN)

    async def results(self) -> AsyncIterator[DecodeResult]:
        """Yield one decoder result per data frame until the connection closes."""
        ws = self._ws
        if ws is None:
            raise RaceFeedError("Feed not connected. Use 'async with FeedClient(...) as feed:'")

        try:
            async for msg in ws:
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    result = decode_frame(msg.data)
                    self._inspect(result)
                    yield result
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    self._logger.warning("Feed transport error url=%s: %r", self._url, ws.exception())
                    self._record_error(FeedTransportError(TRANSPORT_ERROR_TEXT, url=self._url))
        finally:
            if ws.closed:
                self._set_status(ConnectionStatus.CLOSED)

    def _inspect(self, result: DecodeResult) -> None:
        if isinstance(result, Decoded) and isinstance(result.message, ErrorMessage):
            self._logger.debug("Feed reported error: %s", result.message.text)
            self._record_error(ServerReportedError(result.message.text))

    async def run(self) -> None:
        """Connect if needed and pump results into ``on_result`` until closed.

        Transport failures end the loop with :attr:`last_error` set rather
        than raising.
        """
        if self._ws is None or self._ws.closed:
            try:
                await self.connect()
            except FeedTransportError:
                return

        async for result in self.results():
            if self._on_result is not None:
                self._on_result(result)

    async def close(self) -> None:
        """Close the websocket (and the HTTP session if this client created it)."""
        ws = self._ws
        self._ws = None
        try:
            if ws is not None and not ws.closed:
                await ws.close()
        finally:
            if not self._external_session and self._http is not None:
                await self._http.close()
                self._http = None
            self._set_status(ConnectionStatus.CLOSED)
