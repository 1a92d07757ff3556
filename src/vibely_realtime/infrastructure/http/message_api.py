"""REST client for the /api/message endpoints."""
from __future__ import annotations

import logging
from typing import Any

import aiohttp

from vibely_realtime.application.dto.conversation import CreateConversationDTO
from vibely_realtime.application.dto.message import CreateMessageDTO
from vibely_realtime.application.exceptions import UpstreamError
from vibely_realtime.config import settings
from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.domain.entities.message import Message
from vibely_realtime.infrastructure.http.client import parse_payload, request_json
from vibely_realtime.infrastructure.mappers import conversation as conversation_mapper
from vibely_realtime.infrastructure.mappers import message as message_mapper
from vibely_realtime.infrastructure.schemas.common import ApiEnvelope
from vibely_realtime.infrastructure.schemas.conversation import ConversationPayload
from vibely_realtime.infrastructure.schemas.message import MessagePayload

logger = logging.getLogger(__name__)


def _unwrap(body: Any) -> Any:
    envelope = parse_payload(ApiEnvelope, body or {})
    if not envelope.success:
        raise UpstreamError(envelope.message or "Request was not successful")
    return envelope.data


def _as_list(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    return [data] if data else []


class AiohttpMessageApi:
    """Implements application.ports.message_api.MessageApi."""

    def __init__(self, session: aiohttp.ClientSession, base_url: str | None = None) -> None:
        self._session = session
        self._base = f"{(base_url or settings.API_BASE_URL).rstrip('/')}/api/message"

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        body = await request_json(self._session, method, f"{self._base}{path}", **kwargs)
        return _unwrap(body)

    async def list_conversations(self, *, limit: int = 20, offset: int = 0) -> list[ConversationSummary]:
        data = await self._call("GET", "/conversations", params={"limit": limit, "offset": offset})
        return [
            conversation_mapper.payload_to_entity(parse_payload(ConversationPayload, item))
            for item in _as_list(data)
        ]

    async def get_conversation(self, conversation_id: int) -> ConversationSummary:
        data = await self._call("GET", f"/conversations/{conversation_id}")
        return conversation_mapper.payload_to_entity(parse_payload(ConversationPayload, data))

    async def create_conversation(self, data: CreateConversationDTO) -> ConversationSummary:
        body: dict[str, Any] = {"participantIds": data.participant_ids}
        if data.name is not None:
            body["name"] = data.name
        if data.type is not None:
            body["type"] = data.type.value
        result = await self._call("POST", "/conversations", json=body)
        return conversation_mapper.payload_to_entity(parse_payload(ConversationPayload, result))

    async def rename_conversation(self, conversation_id: int, name: str) -> ConversationSummary:
        result = await self._call("PATCH", f"/conversations/{conversation_id}", json={"name": name})
        return conversation_mapper.payload_to_entity(parse_payload(ConversationPayload, result))

    async def update_participant_nickname(self, conversation_id: int, user_id: int, nickname: str) -> None:
        await self._call(
            "PATCH",
            f"/conversations/{conversation_id}/participants/nickname",
            json={"userId": user_id, "nickname": nickname},
        )

    async def add_participant(self, conversation_id: int, user_id: int) -> None:
        await self._call("POST", f"/conversations/{conversation_id}/participants", json={"userId": user_id})

    async def remove_participant(self, conversation_id: int, user_id: int) -> None:
        await self._call("DELETE", f"/conversations/{conversation_id}/participants/{user_id}")

    async def leave_conversation(self, conversation_id: int) -> None:
        await self._call("DELETE", f"/conversations/{conversation_id}/leave")

    async def list_messages(self, conversation_id: int, *, limit: int = 50, offset: int = 0) -> list[Message]:
        data = await self._call(
            "GET",
            "/messages",
            params={"conversationId": conversation_id, "limit": limit, "offset": offset},
        )
        return [message_mapper.payload_to_entity(parse_payload(MessagePayload, item)) for item in _as_list(data)]

    async def send_message(self, data: CreateMessageDTO) -> Message:
        form = aiohttp.FormData()
        form.add_field("conversationId", str(data.conversation_id))
        form.add_field("content", data.content or "")
        form.add_field("contentType", data.content_type.value)
        if data.file is not None:
            form.add_field(
                "file",
                data.file.data,
                filename=data.file.filename,
                content_type=data.file.mime_type,
            )
        result = await self._call("POST", "/messages", data=form)
        if not result:
            raise UpstreamError("Invalid response from server")
        return message_mapper.payload_to_entity(parse_payload(MessagePayload, result))

    async def mark_messages_read(self, message_ids: list[int]) -> None:
        await self._call("PATCH", "/messages/read", json={"messageIds": message_ids})

    async def delete_message(self, message_id: int) -> None:
        await self._call("DELETE", f"/messages/{message_id}")
