from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from vibely_realtime.infrastructure.schemas.common import CAMEL_CONFIG


class NotificationPayload(BaseModel):
    id: int
    user_id: int = 0
    type: str = ""
    content: str = ""
    related_id: int | None = None
    is_read: bool = False
    created_at: datetime

    model_config = CAMEL_CONFIG


class NotificationListResponse(BaseModel):
    notifications: list[NotificationPayload] = []


class UnreadCountResponse(BaseModel):
    unread_count: int = 0

    model_config = CAMEL_CONFIG
