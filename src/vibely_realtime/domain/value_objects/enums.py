from __future__ import annotations

from enum import StrEnum


class ChannelPurpose(StrEnum):
    NOTIFICATIONS = "notifications"
    CHAT = "chat"


class ConnectionState(StrEnum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"


class ContentType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


class AttachmentType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"


class ConversationType(StrEnum):
    DIRECT = "direct"
    GROUP = "group"


class ParticipantRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class NotificationType(StrEnum):
    POSTS = "posts"
    COMMENTS = "comments"
    COMMENT_REACTIONS = "comment_reactions"
    FRIENDSHIPS = "friendships"
    EVENTS = "events"
    POST_REACTIONS = "post_reactions"


class AlertPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"
