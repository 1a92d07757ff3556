"""Session state container: everything real-time that lives between login and logout."""
from __future__ import annotations

import logging

from vibely_realtime.application.exceptions import NotAuthenticatedError
from vibely_realtime.application.ports.alerts import AlertPresenter
from vibely_realtime.application.ports.auth import SessionTerminator
from vibely_realtime.application.ports.message_api import MessageApi
from vibely_realtime.application.ports.notification_api import NotificationApi
from vibely_realtime.domain.aggregates.unread_counters import UnreadCounters
from vibely_realtime.infrastructure.ws.manager import ConnectionManager
from vibely_realtime.services import conversation_service
from vibely_realtime.services.cache_reconciler import ConversationCacheReconciler
from vibely_realtime.services.chat_session import ChatChannelSession
from vibely_realtime.services.notification_stream import NotificationStream
from vibely_realtime.services.presence_tracker import PresenceTracker

logger = logging.getLogger(__name__)


class RealtimeSession:
    """Owns presence, unread counters, caches and channels for one signed-in user.

    All shared state is created here and mutated only from channel handlers
    and the calls below, all on one event loop.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        *,
        message_api: MessageApi,
        notification_api: NotificationApi,
        alerts: AlertPresenter,
        terminator: SessionTerminator,
    ) -> None:
        self.manager = manager
        self.message_api = message_api
        self._terminator = terminator
        self.user_id: int | None = None

        self.presence = PresenceTracker()
        self.counters = UnreadCounters()
        self.reconciler = ConversationCacheReconciler(message_api, self.counters)
        self.notifications = NotificationStream(
            manager,
            presence=self.presence,
            counters=self.counters,
            reconciler=self.reconciler,
            api=notification_api,
            alerts=alerts,
            terminator=self,
        )
        self._chats: dict[int, ChatChannelSession] = {}
        self._terminating = False

    @property
    def chats(self) -> dict[int, ChatChannelSession]:
        return dict(self._chats)

    def chat(self, conversation_id: int) -> ChatChannelSession | None:
        return self._chats.get(conversation_id)

    async def start(self, user_id: int) -> None:
        if not user_id:
            raise NotAuthenticatedError("Cannot start a session without a user")
        if self.user_id is not None:
            await self._teardown()
        self.user_id = user_id
        self.reconciler.user_id = user_id
        self._terminating = False
        await self.notifications.start(user_id)
        logger.info("Realtime session started for user %s", user_id)

    async def open_conversation(self, conversation_id: int) -> ChatChannelSession:
        if self.user_id is None:
            raise NotAuthenticatedError("Session is not started")
        existing = self._chats.get(conversation_id)
        if existing is not None:
            return existing
        chat = ChatChannelSession(
            self.manager,
            api=self.message_api,
            reconciler=self.reconciler,
            user_id=self.user_id,
            conversation_id=conversation_id,
        )
        self._chats[conversation_id] = chat
        return chat

    async def close_conversation(self, conversation_id: int) -> None:
        chat = self._chats.pop(conversation_id, None)
        if chat is not None:
            await chat.close()
        self.reconciler.trim_conversation(conversation_id)

    async def leave_conversation(self, conversation_id: int) -> None:
        await self.close_conversation(conversation_id)
        await conversation_service.leave_conversation(conversation_id, self.message_api, self.reconciler)

    async def logout(self) -> None:
        await self.terminate()

    async def terminate(self) -> None:
        """Logout teardown: close every channel, drop all state, end the auth session."""
        if self._terminating:
            return
        self._terminating = True
        await self._teardown()
        await self._terminator.logout()
        logger.info("Realtime session terminated")

    async def _teardown(self) -> None:
        for conversation_id in list(self._chats):
            await self.close_conversation(conversation_id)
        await self.notifications.stop()
        await self.reconciler.close()
        self.reconciler.clear()
        self.counters.clear()
        self.presence.clear()
        self.user_id = None
        self.reconciler.user_id = None
