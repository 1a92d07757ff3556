from __future__ import annotations

from typing import Protocol


class SessionTerminator(Protocol):
    """Ends the authenticated session (logout) when the server rejects it."""

    async def logout(self) -> None: ...
