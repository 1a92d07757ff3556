from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from vibely_realtime.domain.value_objects.enums import ConversationType, ParticipantRole
from vibely_realtime.infrastructure.schemas.common import CAMEL_CONFIG
from vibely_realtime.infrastructure.schemas.message import MessagePayload, UserPayload


class ParticipantPayload(BaseModel):
    id: int
    conversation_id: int
    user_id: int
    nickname: str | None = None
    role: ParticipantRole = ParticipantRole.MEMBER
    created_at: datetime
    user: UserPayload | None = None

    model_config = CAMEL_CONFIG


class ConversationPayload(BaseModel):
    id: int
    type: ConversationType = ConversationType.DIRECT
    name: str | None = None
    created_at: datetime
    updated_at: datetime
    participants: list[ParticipantPayload] = []
    last_message: MessagePayload | None = None
    unread_count: int = 0

    model_config = CAMEL_CONFIG
