from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from vibely_realtime.domain.entities.message import Message
from vibely_realtime.domain.entities.participant import Participant
from vibely_realtime.domain.value_objects.enums import ConversationType


@dataclass(frozen=True, slots=True)
class ConversationSummary:
    """Cached metadata behind the conversation list. Replaced wholesale on refresh."""

    id: int
    type: ConversationType
    name: str | None
    created_at: datetime
    updated_at: datetime
    participants: tuple[Participant, ...] = ()
    last_message: Message | None = None
    unread_count: int = 0
