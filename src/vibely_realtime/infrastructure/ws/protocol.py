"""WebSocket frame models for the notification and chat channels.

Inbound frames are decoded once, at the channel boundary, into a closed
tagged union per channel. Anything that does not match is logged and dropped.
"""
from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from vibely_realtime.infrastructure.schemas.common import CAMEL_CONFIG
from vibely_realtime.infrastructure.schemas.message import MessagePayload
from vibely_realtime.infrastructure.schemas.notification import NotificationPayload

logger = logging.getLogger(__name__)


class PresencePayload(BaseModel):
    user_id: int
    is_online: bool

    model_config = CAMEL_CONFIG


# Notification channel, server → client.


class PresenceInitFrame(BaseModel):
    type: Literal["presence_init"]
    data: list[int] = []

    @field_validator("data", mode="before")
    @classmethod
    def _list_or_empty(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []


class PresenceFrame(BaseModel):
    type: Literal["presence"]
    data: PresencePayload


class NotificationFrame(BaseModel):
    type: Literal["notification"]
    data: NotificationPayload


class NewMessageNotice(BaseModel):
    type: Literal["new_message"]


class ConnectedFrame(BaseModel):
    type: Literal["connected"]
    message: str = ""


class AuthErrorFrame(BaseModel):
    type: Literal["auth_error", "token_expired"]


NotificationChannelFrame = Annotated[
    Union[
        PresenceInitFrame,
        PresenceFrame,
        NotificationFrame,
        NewMessageNotice,
        ConnectedFrame,
        AuthErrorFrame,
    ],
    Field(discriminator="type"),
]


# Chat channel, server → client.


class ChatMessageFrame(BaseModel):
    type: Literal["new_message", "chat_message"]
    data: MessagePayload


class MessageUpdatedFrame(BaseModel):
    type: Literal["message_updated"]
    data: MessagePayload


class ConversationUpdatedFrame(BaseModel):
    type: Literal["conversation_updated"]


class TypingFrame(BaseModel):
    type: Literal["user_typing", "user_stopped_typing"]
    sender_id: int = Field(alias="from")

    model_config = CAMEL_CONFIG


ChatChannelFrame = Annotated[
    Union[
        ChatMessageFrame,
        MessageUpdatedFrame,
        ConversationUpdatedFrame,
        TypingFrame,
        ConnectedFrame,
    ],
    Field(discriminator="type"),
]


# Chat channel, client → server.


class ChatMessageOut(BaseModel):
    type: Literal["chat_message"] = "chat_message"
    content: str


class TypingOut(BaseModel):
    type: Literal["start_typing", "stop_typing"]
    conversation_id: int

    model_config = CAMEL_CONFIG


def to_wire(frame: BaseModel) -> dict[str, Any]:
    return frame.model_dump(by_alias=True)


NOTIFICATION_FRAME_TYPES = frozenset(
    {"presence_init", "presence", "notification", "new_message", "connected", "auth_error", "token_expired"}
)
CHAT_FRAME_TYPES = frozenset(
    {
        "new_message",
        "chat_message",
        "message_updated",
        "conversation_updated",
        "user_typing",
        "user_stopped_typing",
        "connected",
    }
)

_notification_adapter: TypeAdapter[NotificationChannelFrame] = TypeAdapter(NotificationChannelFrame)
_chat_adapter: TypeAdapter[ChatChannelFrame] = TypeAdapter(ChatChannelFrame)


def decode_notification_frame(data: dict[str, Any]) -> NotificationChannelFrame | None:
    return _decode(_notification_adapter, NOTIFICATION_FRAME_TYPES, data, "notifications")


def decode_chat_frame(data: dict[str, Any]) -> ChatChannelFrame | None:
    return _decode(_chat_adapter, CHAT_FRAME_TYPES, data, "chat")


def _decode(
    adapter: TypeAdapter[Any],
    known: frozenset[str],
    data: dict[str, Any],
    channel: str,
) -> Any:
    frame_type = data.get("type")
    if frame_type not in known:
        logger.debug("Ignoring %s frame of unknown type %r", channel, frame_type)
        return None
    try:
        return adapter.validate_python(data)
    except ValidationError:
        logger.warning("Dropping malformed %s frame type=%s", channel, frame_type, exc_info=True)
        return None
