from __future__ import annotations

from dataclasses import dataclass, field

from vibely_realtime.domain.value_objects.enums import ConversationType


@dataclass(frozen=True, slots=True)
class CreateConversationDTO:
    participant_ids: list[int] = field(default_factory=list)
    name: str | None = None
    type: ConversationType | None = None
