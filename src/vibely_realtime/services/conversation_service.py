from __future__ import annotations

import logging

from vibely_realtime.application.dto.conversation import CreateConversationDTO
from vibely_realtime.application.exceptions import ValidationError
from vibely_realtime.application.ports.message_api import MessageApi
from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler

logger = logging.getLogger(__name__)


async def create_conversation(
    data: CreateConversationDTO,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> ConversationSummary:
    if not data.participant_ids:
        raise ValidationError("A conversation needs at least one other participant")
    conversation = await api.create_conversation(data)
    reconciler.invalidate_conversations()
    return conversation


async def rename_conversation(
    conversation_id: int,
    name: str,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> ConversationSummary:
    name = name.strip()
    if not name:
        raise ValidationError("Conversation name must not be empty")
    conversation = await api.rename_conversation(conversation_id, name)
    reconciler.invalidate_conversations()
    return conversation


async def update_participant_nickname(
    conversation_id: int,
    user_id: int,
    nickname: str,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> None:
    await api.update_participant_nickname(conversation_id, user_id, nickname.strip())
    reconciler.invalidate_conversations()


async def add_participant(
    conversation_id: int,
    user_id: int,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> None:
    await api.add_participant(conversation_id, user_id)
    reconciler.invalidate_conversations()


async def remove_participant(
    conversation_id: int,
    user_id: int,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> None:
    await api.remove_participant(conversation_id, user_id)
    reconciler.invalidate_conversations()


async def leave_conversation(
    conversation_id: int,
    api: MessageApi,
    reconciler: ConversationCacheReconciler,
) -> None:
    """Leave a conversation and forget everything cached for it."""
    await api.leave_conversation(conversation_id)
    reconciler.drop_conversation(conversation_id)
    reconciler.invalidate_conversations()
    logger.info("Left conversation %s", conversation_id)
