from __future__ import annotations

from typing import Protocol

from vibely_realtime.application.dto.conversation import CreateConversationDTO
from vibely_realtime.application.dto.message import CreateMessageDTO
from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.domain.entities.message import Message


class MessageApi(Protocol):
    async def list_conversations(self, *, limit: int = 20, offset: int = 0) -> list[ConversationSummary]: ...

    async def get_conversation(self, conversation_id: int) -> ConversationSummary: ...

    async def create_conversation(self, data: CreateConversationDTO) -> ConversationSummary: ...

    async def rename_conversation(self, conversation_id: int, name: str) -> ConversationSummary: ...

    async def update_participant_nickname(self, conversation_id: int, user_id: int, nickname: str) -> None: ...

    async def add_participant(self, conversation_id: int, user_id: int) -> None: ...

    async def remove_participant(self, conversation_id: int, user_id: int) -> None: ...

    async def leave_conversation(self, conversation_id: int) -> None: ...

    async def list_messages(self, conversation_id: int, *, limit: int = 50, offset: int = 0) -> list[Message]: ...

    async def send_message(self, data: CreateMessageDTO) -> Message:
        """Multipart upload path, used for messages carrying a file."""
        ...

    async def mark_messages_read(self, message_ids: list[int]) -> None: ...

    async def delete_message(self, message_id: int) -> None: ...
