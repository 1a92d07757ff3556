"""One open conversation's low-latency channel."""
from __future__ import annotations

import logging
from typing import Any

from vibely_realtime.application.dto.message import CreateMessageDTO, UploadFile
from vibely_realtime.application.exceptions import ChannelNotConnected, ValidationError
from vibely_realtime.application.ports.message_api import MessageApi
from vibely_realtime.domain.entities.message import Message
from vibely_realtime.infrastructure.mappers.message import payload_to_entity
from vibely_realtime.infrastructure.ws.manager import ChannelHandlers, ConnectionHandle, ConnectionManager
from vibely_realtime.infrastructure.ws.protocol import (
    ChatMessageFrame,
    ChatMessageOut,
    ConnectedFrame,
    ConversationUpdatedFrame,
    MessageUpdatedFrame,
    TypingFrame,
    TypingOut,
    decode_chat_frame,
    to_wire,
)
from vibely_realtime.infrastructure.ws.urls import channel_url, chat_key
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler

logger = logging.getLogger(__name__)


class ChatChannelSession:
    """Chat channel keyed by (user, conversation).

    Text goes over the socket and is not appended locally; the server echo
    drives the cache. Messages with a file take the REST upload path.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        *,
        api: MessageApi,
        reconciler: ConversationCacheReconciler,
        user_id: int | None,
        conversation_id: int | None,
    ) -> None:
        self._manager = manager
        self._api = api
        self._reconciler = reconciler
        self.user_id = user_id
        self.conversation_id = conversation_id
        self._typing: set[int] = set()
        url = channel_url(chat_key(conversation_id), user_id)
        self._handle: ConnectionHandle = manager.open(
            url,
            ChannelHandlers(
                on_message=self.handle_frame,
                on_connect=self._on_connect,
                on_disconnect=self._on_disconnect,
            ),
        )

    @property
    def handle(self) -> ConnectionHandle:
        return self._handle

    @property
    def is_connected(self) -> bool:
        return self._handle.is_connected

    @property
    def typing_users(self) -> frozenset[int]:
        return frozenset(self._typing)

    async def send_message(self, content: str, file: UploadFile | None = None) -> Message | None:
        """Send over the socket, or upload when a file is attached.

        Returns the stored message for uploads and None for socket sends.
        """
        text = (content or "").strip()
        if not text and file is None:
            raise ValidationError("Message must have content or a file")

        if file is not None:
            if not self.conversation_id:
                raise ValidationError("No conversation selected")
            message = await self._api.send_message(
                CreateMessageDTO(
                    conversation_id=self.conversation_id,
                    content=text,
                    content_type=file.content_type,
                    file=file,
                ),
            )
            self._reconciler.append_message(message)
            self._reconciler.invalidate_conversations()
            return message

        if not self._handle.is_connected:
            raise ChannelNotConnected("Chat channel is not connected")
        sent = await self._manager.send(self._handle, to_wire(ChatMessageOut(content=text)))
        if not sent:
            raise ChannelNotConnected("Chat channel closed while sending")
        return None

    async def send_typing_indicator(self, is_typing: bool) -> None:
        if not self.conversation_id or not self._handle.is_connected:
            return
        frame = TypingOut(
            type="start_typing" if is_typing else "stop_typing",
            conversation_id=self.conversation_id,
        )
        if not await self._manager.send(self._handle, to_wire(frame)):
            logger.debug("Typing indicator for conversation %s not sent", self.conversation_id)

    async def handle_frame(self, data: dict[str, Any]) -> None:
        frame = decode_chat_frame(data)
        if frame is None:
            return

        if isinstance(frame, ChatMessageFrame):
            message = payload_to_entity(frame.data)
            if message.conversation_id != self.conversation_id:
                logger.warning(
                    "Message %s for conversation %s arrived on channel %s, dropping",
                    message.id, message.conversation_id, self.conversation_id,
                )
                return
            self._typing.discard(message.sender_id)
            self._reconciler.append_message(message)
            self._reconciler.invalidate_conversations()
        elif isinstance(frame, MessageUpdatedFrame):
            self._reconciler.update_message(payload_to_entity(frame.data))
        elif isinstance(frame, ConversationUpdatedFrame):
            self._reconciler.invalidate_conversations()
        elif isinstance(frame, TypingFrame):
            if frame.type == "user_typing":
                self._typing.add(frame.sender_id)
            else:
                self._typing.discard(frame.sender_id)
        elif isinstance(frame, ConnectedFrame):
            logger.info("Chat channel ready: %s", frame.message)

    async def close(self) -> None:
        await self._manager.close(self._handle)
        self._typing.clear()

    def _on_connect(self) -> None:
        logger.info("Chat channel connected for conversation %s", self.conversation_id)

    def _on_disconnect(self) -> None:
        self._typing.clear()
        logger.info("Chat channel disconnected for conversation %s", self.conversation_id)
