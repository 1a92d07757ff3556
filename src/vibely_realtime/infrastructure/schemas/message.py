from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from vibely_realtime.domain.value_objects.enums import AttachmentType, ContentType
from vibely_realtime.infrastructure.schemas.common import CAMEL_CONFIG


class UserPayload(BaseModel):
    id: int
    name: str = ""
    surname: str = ""
    profile_picture_url: str | None = None
    nickname: str | None = None

    model_config = CAMEL_CONFIG


class AttachmentPayload(BaseModel):
    id: int
    message_id: int
    file_url: str
    file_type: AttachmentType
    file_size: int = 0
    created_at: datetime

    model_config = CAMEL_CONFIG


class MessagePayload(BaseModel):
    id: int
    conversation_id: int
    sender_id: int
    content: str = ""
    content_type: ContentType = ContentType.TEXT
    is_read: bool = False
    created_at: datetime
    sender: UserPayload | None = None
    attachments: list[AttachmentPayload] = []

    model_config = CAMEL_CONFIG
