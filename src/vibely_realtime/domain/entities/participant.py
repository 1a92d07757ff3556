from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from vibely_realtime.domain.entities.message import UserSummary
from vibely_realtime.domain.value_objects.enums import ParticipantRole


@dataclass(frozen=True, slots=True)
class Participant:
    id: int
    conversation_id: int
    user_id: int
    role: ParticipantRole
    created_at: datetime
    nickname: str | None = None
    user: UserSummary | None = None
