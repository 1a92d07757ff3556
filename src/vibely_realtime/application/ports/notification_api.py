from __future__ import annotations

from typing import Protocol

from vibely_realtime.domain.entities.notification import Notification


class NotificationApi(Protocol):
    async def list_notifications(self, *, limit: int = 20, offset: int = 0) -> list[Notification]: ...
    async def unread_count(self) -> int: ...
    async def mark_read(self, notification_id: int) -> None: ...
    async def mark_all_read(self) -> None: ...
