"""Per-session notification channel: notifications, presence, cross-conversation signals."""
from __future__ import annotations

import logging
from typing import Any

from vibely_realtime.application.ports.alerts import AlertPresenter
from vibely_realtime.application.ports.auth import SessionTerminator
from vibely_realtime.application.ports.notification_api import NotificationApi
from vibely_realtime.config import settings
from vibely_realtime.domain.aggregates.notification_feed import NotificationFeed
from vibely_realtime.domain.aggregates.unread_counters import UnreadCounters
from vibely_realtime.domain.entities.notification import Notification
from vibely_realtime.domain.value_objects.enums import AlertPermission
from vibely_realtime.infrastructure.mappers.notification import payload_to_entity
from vibely_realtime.infrastructure.ws.manager import ChannelHandlers, ConnectionHandle, ConnectionManager
from vibely_realtime.infrastructure.ws.protocol import (
    AuthErrorFrame,
    ConnectedFrame,
    NewMessageNotice,
    NotificationFrame,
    PresenceFrame,
    PresenceInitFrame,
    decode_notification_frame,
)
from vibely_realtime.infrastructure.ws.urls import channel_url, notifications_key
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler
from vibely_realtime.services.presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


def alert_tag(notification_id: int) -> str:
    return f"notification-{notification_id}"


class NotificationStream:
    def __init__(
        self,
        manager: ConnectionManager,
        *,
        presence: PresenceTracker,
        counters: UnreadCounters,
        reconciler: ConversationCacheReconciler,
        api: NotificationApi,
        alerts: AlertPresenter,
        terminator: SessionTerminator,
        feed: NotificationFeed | None = None,
    ) -> None:
        self._manager = manager
        self._presence = presence
        self._counters = counters
        self._reconciler = reconciler
        self._api = api
        self._alerts = alerts
        self._terminator = terminator
        self.feed = feed or NotificationFeed(max_items=settings.NOTIFICATIONS_MAX)
        self.unread_count = 0
        self._handle: ConnectionHandle | None = None
        self._user_id: int | None = None

    @property
    def unread_messages(self) -> int:
        return self._counters.total

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self.feed.items

    @property
    def is_connected(self) -> bool:
        return self._handle is not None and self._handle.is_connected

    async def start(self, user_id: int | None) -> ConnectionHandle:
        if self._handle is not None:
            await self.stop()
        self._user_id = user_id
        if user_id and self._alerts.permission is AlertPermission.DEFAULT:
            permission = await self._alerts.request_permission()
            logger.info("Alert permission: %s", permission)
        url = channel_url(notifications_key(user_id), user_id)
        self._handle = self._manager.open(
            url,
            ChannelHandlers(
                on_message=self.handle_frame,
                on_connect=self._on_connect,
                on_disconnect=self._on_disconnect,
            ),
        )
        return self._handle

    async def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            await self._manager.close(handle)
        self.feed.clear()
        self.unread_count = 0
        self._user_id = None

    async def handle_frame(self, data: dict[str, Any]) -> None:
        frame = decode_notification_frame(data)
        if frame is None:
            return

        if isinstance(frame, NotificationFrame):
            self._on_notification(payload_to_entity(frame.data))
        elif isinstance(frame, NewMessageNotice):
            self._counters.bump_total()
            self._reconciler.invalidate_conversations()
        elif isinstance(frame, PresenceInitFrame):
            self._presence.replace(frame.data)
        elif isinstance(frame, PresenceFrame):
            self._presence.apply(frame.data.user_id, frame.data.is_online)
        elif isinstance(frame, AuthErrorFrame):
            logger.warning("Server rejected the session (%s), logging out", frame.type)
            await self._terminator.logout()
        elif isinstance(frame, ConnectedFrame):
            logger.info("Notification channel ready: %s", frame.message)

    def _on_notification(self, notification: Notification) -> None:
        is_new = self.feed.add(notification)
        if notification.is_read:
            return
        if is_new:
            self.unread_count += 1
        if self._alerts.permission is AlertPermission.GRANTED:
            self._alerts.show(
                notification.content,
                tag=alert_tag(notification.id),
                icon=settings.ALERT_ICON,
            )

    def _on_connect(self) -> None:
        logger.info("Notification channel connected for user %s", self._user_id)

    def _on_disconnect(self) -> None:
        logger.info("Notification channel disconnected for user %s", self._user_id)

    # REST sync

    async def load_notifications(self, *, limit: int | None = None, offset: int = 0) -> tuple[Notification, ...]:
        batch = await self._api.list_notifications(
            limit=limit or settings.NOTIFICATIONS_PAGE_SIZE, offset=offset,
        )
        if offset == 0:
            self.feed.replace(batch)
        else:
            self.feed.extend(batch)
        return self.feed.items

    async def refresh_unread_count(self) -> int:
        self.unread_count = max(0, await self._api.unread_count())
        return self.unread_count

    async def mark_notification_read(self, notification_id: int) -> None:
        await self._api.mark_read(notification_id)
        if self.feed.mark_read(notification_id):
            self.unread_count = max(0, self.unread_count - 1)

    async def mark_all_notifications_read(self) -> None:
        await self._api.mark_all_read()
        self.feed.mark_all_read()
        self.unread_count = 0
