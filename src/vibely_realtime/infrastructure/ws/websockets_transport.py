"""Transport adapter over the ``websockets`` asyncio client."""
from __future__ import annotations

import logging

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from vibely_realtime.application.exceptions import TransportClosed
from vibely_realtime.domain.value_objects.ids import ABNORMAL_CLOSURE

logger = logging.getLogger(__name__)


def _closed(exc: ConnectionClosed) -> TransportClosed:
    if exc.rcvd is not None:
        return TransportClosed(exc.rcvd.code, exc.rcvd.reason)
    return TransportClosed(ABNORMAL_CLOSURE, "connection lost")


class WebSocketConnection:
    def __init__(self, ws: ClientConnection) -> None:
        self._ws = ws

    async def recv(self) -> str:
        try:
            data = await self._ws.recv()
        except ConnectionClosed as exc:
            raise _closed(exc) from exc
        if isinstance(data, bytes):
            return data.decode("utf-8", errors="replace")
        return data

    async def send(self, data: str) -> None:
        try:
            await self._ws.send(data)
        except ConnectionClosed as exc:
            raise _closed(exc) from exc

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self._ws.close(code=code, reason=reason)


class WebSocketConnector:
    """Implements application.ports.transport.Connector.

    Session credentials travel in the handshake headers (the session cookie),
    never in the URL. No handshake timeout is applied unless one is given.
    """

    def __init__(
        self,
        *,
        headers: dict[str, str] | None = None,
        open_timeout: float | None = None,
    ) -> None:
        self._headers = headers or {}
        self._open_timeout = open_timeout

    async def connect(self, url: str) -> WebSocketConnection:
        ws = await connect(
            url,
            additional_headers=self._headers,
            open_timeout=self._open_timeout,
        )
        logger.debug("WebSocket handshake complete: %s", url)
        return WebSocketConnection(ws)
