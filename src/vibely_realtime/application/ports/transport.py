from __future__ import annotations

from typing import Protocol


class Connection(Protocol):
    """One established duplex connection.

    ``recv`` raises ``TransportClosed`` once the connection is gone.
    """

    async def recv(self) -> str: ...
    async def send(self, data: str) -> None: ...
    async def close(self, code: int = 1000, reason: str = "") -> None: ...


class Connector(Protocol):
    async def connect(self, url: str) -> Connection: ...
