from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from vibely_realtime.domain.value_objects.enums import AttachmentType, ContentType


@dataclass(frozen=True, slots=True)
class UserSummary:
    id: int
    name: str
    surname: str
    profile_picture_url: str | None = None
    nickname: str | None = None


@dataclass(frozen=True, slots=True)
class Attachment:
    id: int
    message_id: int
    file_url: str
    file_type: AttachmentType
    file_size: int
    created_at: datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    conversation_id: int
    sender_id: int
    content: str
    content_type: ContentType
    is_read: bool
    created_at: datetime
    sender: UserSummary | None = None
    attachments: tuple[Attachment, ...] = ()

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return self.created_at, self.id
