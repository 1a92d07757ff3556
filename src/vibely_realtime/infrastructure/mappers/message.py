from __future__ import annotations

from vibely_realtime.domain.entities.message import Attachment, Message, UserSummary
from vibely_realtime.infrastructure.schemas.message import (
    AttachmentPayload,
    MessagePayload,
    UserPayload,
)


def user_to_entity(payload: UserPayload) -> UserSummary:
    return UserSummary(
        id=payload.id,
        name=payload.name,
        surname=payload.surname,
        profile_picture_url=payload.profile_picture_url,
        nickname=payload.nickname,
    )


def attachment_to_entity(payload: AttachmentPayload) -> Attachment:
    return Attachment(
        id=payload.id,
        message_id=payload.message_id,
        file_url=payload.file_url,
        file_type=payload.file_type,
        file_size=payload.file_size,
        created_at=payload.created_at,
    )


def payload_to_entity(payload: MessagePayload) -> Message:
    return Message(
        id=payload.id,
        conversation_id=payload.conversation_id,
        sender_id=payload.sender_id,
        content=payload.content,
        content_type=payload.content_type,
        is_read=payload.is_read,
        created_at=payload.created_at,
        sender=user_to_entity(payload.sender) if payload.sender else None,
        attachments=tuple(attachment_to_entity(a) for a in payload.attachments),
    )
