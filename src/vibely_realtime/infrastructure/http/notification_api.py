"""REST client for the /api/notification endpoints."""
from __future__ import annotations

from typing import Any

import aiohttp

from vibely_realtime.config import settings
from vibely_realtime.domain.entities.notification import Notification
from vibely_realtime.infrastructure.http.client import parse_payload, request_json
from vibely_realtime.infrastructure.mappers.notification import payload_to_entity
from vibely_realtime.infrastructure.schemas.notification import (
    NotificationListResponse,
    UnreadCountResponse,
)


class AiohttpNotificationApi:
    """Implements application.ports.notification_api.NotificationApi."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str | None = None) -> None:
        self._session = session
        self._base = f"{(base_url or settings.API_BASE_URL).rstrip('/')}/api/notification"

    async def _call(self, method: str, path: str = "", **kwargs: Any) -> Any:
        return await request_json(self._session, method, f"{self._base}{path}", **kwargs)

    async def list_notifications(self, *, limit: int = 20, offset: int = 0) -> list[Notification]:
        body = await self._call("GET", params={"limit": limit, "offset": offset})
        parsed = parse_payload(NotificationListResponse, body or {})
        return [payload_to_entity(n) for n in parsed.notifications]

    async def unread_count(self) -> int:
        body = await self._call("GET", "/unread-count")
        return parse_payload(UnreadCountResponse, body or {}).unread_count

    async def mark_read(self, notification_id: int) -> None:
        await self._call("PATCH", f"/{notification_id}/read")

    async def mark_all_read(self) -> None:
        await self._call("PATCH", "/read-all")
