from __future__ import annotations

from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.domain.entities.participant import Participant
from vibely_realtime.infrastructure.mappers.message import payload_to_entity as message_to_entity
from vibely_realtime.infrastructure.mappers.message import user_to_entity
from vibely_realtime.infrastructure.schemas.conversation import (
    ConversationPayload,
    ParticipantPayload,
)


def participant_to_entity(payload: ParticipantPayload) -> Participant:
    return Participant(
        id=payload.id,
        conversation_id=payload.conversation_id,
        user_id=payload.user_id,
        role=payload.role,
        created_at=payload.created_at,
        nickname=payload.nickname,
        user=user_to_entity(payload.user) if payload.user else None,
    )


def payload_to_entity(payload: ConversationPayload) -> ConversationSummary:
    return ConversationSummary(
        id=payload.id,
        type=payload.type,
        name=payload.name,
        created_at=payload.created_at,
        updated_at=payload.updated_at,
        participants=tuple(participant_to_entity(p) for p in payload.participants),
        last_message=message_to_entity(payload.last_message) if payload.last_message else None,
        unread_count=payload.unread_count,
    )
