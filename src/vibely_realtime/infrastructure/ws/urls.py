from __future__ import annotations

from urllib.parse import urlencode

from vibely_realtime.config import settings
from vibely_realtime.domain.value_objects.enums import ChannelPurpose
from vibely_realtime.domain.value_objects.ids import ChannelKey


def channel_url(key: ChannelKey | None, user_id: int | None) -> str | None:
    """Connection URL for a channel, or None while there is nothing to subscribe to."""
    if key is None or not key.subject_id or not user_id:
        return None
    if key.purpose is ChannelPurpose.NOTIFICATIONS:
        return f"{settings.notifications_ws_url}?{urlencode({'userId': user_id})}"
    query = urlencode({"userId": user_id, "conversationId": key.subject_id})
    return f"{settings.chat_ws_url}?{query}"


def notifications_key(user_id: int | None) -> ChannelKey | None:
    return ChannelKey(ChannelPurpose.NOTIFICATIONS, user_id) if user_id else None


def chat_key(conversation_id: int | None) -> ChannelKey | None:
    return ChannelKey(ChannelPurpose.CHAT, conversation_id) if conversation_id else None
