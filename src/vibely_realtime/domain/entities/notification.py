from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from vibely_realtime.domain.value_objects.enums import NotificationType


@dataclass(frozen=True, slots=True)
class Notification:
    id: int
    user_id: int
    type: NotificationType | str
    content: str
    is_read: bool
    created_at: datetime
    related_id: int | None = None
