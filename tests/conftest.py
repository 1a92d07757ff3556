"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from vibely_realtime.application.dto.conversation import CreateConversationDTO
from vibely_realtime.application.dto.message import CreateMessageDTO
from vibely_realtime.application.exceptions import TransportClosed, UpstreamError
from vibely_realtime.domain.aggregates.unread_counters import UnreadCounters
from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.domain.entities.message import Message
from vibely_realtime.domain.entities.notification import Notification
from vibely_realtime.domain.value_objects.enums import (
    AlertPermission,
    ContentType,
    ConversationType,
    NotificationType,
)
from vibely_realtime.infrastructure.ws.manager import ConnectionManager, ReconnectPolicy
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)
ME = 1
FRIEND = 2


async def settle(rounds: int = 20) -> None:
    """Let spawned tasks run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def iso(seconds: int) -> str:
    return (BASE_TIME + timedelta(seconds=seconds)).isoformat().replace("+00:00", "Z")


def make_message(
    message_id: int,
    *,
    conversation_id: int = 10,
    sender_id: int = FRIEND,
    is_read: bool = False,
    content: str | None = None,
) -> Message:
    return Message(
        id=message_id,
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content if content is not None else f"message {message_id}",
        content_type=ContentType.TEXT,
        is_read=is_read,
        created_at=BASE_TIME + timedelta(seconds=message_id),
    )


def message_payload(message_id: int, *, conversation_id: int = 10, sender_id: int = FRIEND, **extra: Any) -> dict[str, Any]:
    return {
        "id": message_id,
        "conversationId": conversation_id,
        "senderId": sender_id,
        "content": f"message {message_id}",
        "contentType": "text",
        "isRead": False,
        "createdAt": iso(message_id),
        **extra,
    }


def make_notification(notification_id: int, *, seconds: int | None = None, is_read: bool = False) -> Notification:
    return Notification(
        id=notification_id,
        user_id=ME,
        type=NotificationType.FRIENDSHIPS,
        content=f"notification {notification_id}",
        is_read=is_read,
        created_at=BASE_TIME + timedelta(seconds=notification_id if seconds is None else seconds),
    )


def notification_payload(notification_id: int, *, seconds: int | None = None, is_read: bool = False) -> dict[str, Any]:
    return {
        "id": notification_id,
        "userId": ME,
        "type": "friendships",
        "content": f"notification {notification_id}",
        "isRead": is_read,
        "createdAt": iso(notification_id if seconds is None else seconds),
    }


def make_conversation(
    conversation_id: int = 10,
    *,
    unread_count: int = 0,
    last_message: Message | None = None,
) -> ConversationSummary:
    return ConversationSummary(
        id=conversation_id,
        type=ConversationType.DIRECT,
        name=None,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
        last_message=last_message,
        unread_count=unread_count,
    )


# Transport fakes


@dataclass
class FakeTimer:
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    timers: list[FakeTimer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def delays_ms(self) -> list[int]:
        return [round(t.delay * 1000) for t in self.timers]

    def fire_next(self) -> None:
        timer = self.pending[0]
        timer.fired = True
        timer.callback()


class FakeConnection:
    def __init__(self, url: str) -> None:
        self.url = url
        self.inbox: asyncio.Queue[str | TransportClosed] = asyncio.Queue()
        self.sent: list[dict[str, Any]] = []
        self.closed_with: tuple[int, str] | None = None

    async def recv(self) -> str:
        item = await self.inbox.get()
        if isinstance(item, TransportClosed):
            raise item
        return item

    async def send(self, data: str) -> None:
        if self.closed_with is not None:
            raise TransportClosed(self.closed_with[0], self.closed_with[1])
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed_with = (code, reason)
        self.inbox.put_nowait(TransportClosed(code, reason))

    def push(self, frame: dict[str, Any] | str) -> None:
        self.inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self, code: int = 1006, reason: str = "") -> None:
        """Simulate the peer or the network closing the connection."""
        self.closed_with = (code, reason)
        self.inbox.put_nowait(TransportClosed(code, reason))


@dataclass
class FakeConnector:
    connections: list[FakeConnection] = field(default_factory=list)
    attempted_urls: list[str] = field(default_factory=list)
    fail_next: int = 0

    async def connect(self, url: str) -> FakeConnection:
        self.attempted_urls.append(url)
        if self.fail_next:
            self.fail_next -= 1
            raise OSError("connection refused")
        connection = FakeConnection(url)
        self.connections.append(connection)
        return connection

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


# REST fakes


@dataclass
class FakeMessageApi:
    conversations: list[ConversationSummary] = field(default_factory=list)
    messages: dict[int, list[Message]] = field(default_factory=dict)
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    uploads: list[CreateMessageDTO] = field(default_factory=list)
    fail_with: UpstreamError | None = None
    next_message_id: int = 1000

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def list_conversations(self, *, limit: int = 20, offset: int = 0) -> list[ConversationSummary]:
        self.calls.append(("list_conversations", limit, offset))
        self._check()
        return self.conversations[offset:offset + limit]

    async def get_conversation(self, conversation_id: int) -> ConversationSummary:
        self._check()
        return next(c for c in self.conversations if c.id == conversation_id)

    async def create_conversation(self, data: CreateConversationDTO) -> ConversationSummary:
        self.calls.append(("create_conversation", tuple(data.participant_ids)))
        self._check()
        conversation = make_conversation(len(self.conversations) + 100)
        self.conversations.append(conversation)
        return conversation

    async def rename_conversation(self, conversation_id: int, name: str) -> ConversationSummary:
        self.calls.append(("rename_conversation", conversation_id, name))
        self._check()
        return make_conversation(conversation_id)

    async def update_participant_nickname(self, conversation_id: int, user_id: int, nickname: str) -> None:
        self.calls.append(("update_participant_nickname", conversation_id, user_id, nickname))
        self._check()

    async def add_participant(self, conversation_id: int, user_id: int) -> None:
        self.calls.append(("add_participant", conversation_id, user_id))
        self._check()

    async def remove_participant(self, conversation_id: int, user_id: int) -> None:
        self.calls.append(("remove_participant", conversation_id, user_id))
        self._check()

    async def leave_conversation(self, conversation_id: int) -> None:
        self.calls.append(("leave_conversation", conversation_id))
        self._check()

    async def list_messages(self, conversation_id: int, *, limit: int = 50, offset: int = 0) -> list[Message]:
        self.calls.append(("list_messages", conversation_id, limit, offset))
        self._check()
        newest_first = sorted(self.messages.get(conversation_id, []), key=lambda m: m.sort_key, reverse=True)
        return newest_first[offset:offset + limit]

    async def send_message(self, data: CreateMessageDTO) -> Message:
        self.uploads.append(data)
        self._check()
        self.next_message_id += 1
        message = Message(
            id=self.next_message_id,
            conversation_id=data.conversation_id,
            sender_id=ME,
            content=data.content,
            content_type=data.content_type,
            is_read=False,
            created_at=BASE_TIME + timedelta(seconds=self.next_message_id),
        )
        self.messages.setdefault(data.conversation_id, []).append(message)
        return message

    async def mark_messages_read(self, message_ids: list[int]) -> None:
        self.calls.append(("mark_messages_read", tuple(message_ids)))
        self._check()

    async def delete_message(self, message_id: int) -> None:
        self.calls.append(("delete_message", message_id))
        self._check()


@dataclass
class FakeNotificationApi:
    notifications: list[Notification] = field(default_factory=list)
    unread: int = 0
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    fail_with: UpstreamError | None = None

    def _check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def list_notifications(self, *, limit: int = 20, offset: int = 0) -> list[Notification]:
        self.calls.append(("list_notifications", limit, offset))
        self._check()
        return self.notifications[offset:offset + limit]

    async def unread_count(self) -> int:
        self.calls.append(("unread_count",))
        self._check()
        return self.unread

    async def mark_read(self, notification_id: int) -> None:
        self.calls.append(("mark_read", notification_id))
        self._check()

    async def mark_all_read(self) -> None:
        self.calls.append(("mark_all_read",))
        self._check()


# Side-effect fakes


@dataclass
class FakeAlertPresenter:
    permission: AlertPermission = AlertPermission.DEFAULT
    grant_to: AlertPermission = AlertPermission.GRANTED
    permission_requests: int = 0
    shown: list[tuple[str, str, str | None]] = field(default_factory=list)

    async def request_permission(self) -> AlertPermission:
        self.permission_requests += 1
        self.permission = self.grant_to
        return self.permission

    def show(self, title: str, *, tag: str, icon: str | None = None) -> None:
        self.shown.append((title, tag, icon))


@dataclass
class FakeTerminator:
    logouts: int = 0

    async def logout(self) -> None:
        self.logouts += 1


# Fixtures


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def manager(connector: FakeConnector, scheduler: FakeScheduler) -> ConnectionManager:
    return ConnectionManager(connector, scheduler=scheduler, policy=ReconnectPolicy())


@pytest.fixture
def message_api() -> FakeMessageApi:
    return FakeMessageApi()


@pytest.fixture
def notification_api() -> FakeNotificationApi:
    return FakeNotificationApi()


@pytest.fixture
def alerts() -> FakeAlertPresenter:
    return FakeAlertPresenter()


@pytest.fixture
def terminator() -> FakeTerminator:
    return FakeTerminator()


@pytest.fixture
def counters() -> UnreadCounters:
    return UnreadCounters()


@pytest.fixture
def reconciler(message_api: FakeMessageApi, counters: UnreadCounters) -> ConversationCacheReconciler:
    return ConversationCacheReconciler(
        message_api,
        counters,
        user_id=ME,
        messages_page_size=11,
        conversations_page_size=20,
        max_pages=3,
    )
