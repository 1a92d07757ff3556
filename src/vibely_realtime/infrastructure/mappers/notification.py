from __future__ import annotations

from vibely_realtime.domain.entities.notification import Notification
from vibely_realtime.domain.value_objects.enums import NotificationType
from vibely_realtime.infrastructure.schemas.notification import NotificationPayload


def payload_to_entity(payload: NotificationPayload) -> Notification:
    try:
        kind: NotificationType | str = NotificationType(payload.type)
    except ValueError:
        kind = payload.type
    return Notification(
        id=payload.id,
        user_id=payload.user_id,
        type=kind,
        content=payload.content,
        is_read=payload.is_read,
        created_at=payload.created_at,
        related_id=payload.related_id,
    )
