from __future__ import annotations

from dataclasses import dataclass

from vibely_realtime.domain.value_objects.enums import ContentType


@dataclass(frozen=True, slots=True)
class UploadFile:
    filename: str
    data: bytes
    mime_type: str = "application/octet-stream"

    @property
    def content_type(self) -> ContentType:
        return ContentType.IMAGE if self.mime_type.startswith("image/") else ContentType.VIDEO


@dataclass(frozen=True, slots=True)
class CreateMessageDTO:
    conversation_id: int
    content: str
    content_type: ContentType = ContentType.TEXT
    file: UploadFile | None = None
