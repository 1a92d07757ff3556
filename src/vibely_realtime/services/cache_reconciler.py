"""Client-held conversation list and message pages, kept consistent with REST."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from vibely_realtime.application.exceptions import UpstreamError
from vibely_realtime.application.ports.message_api import MessageApi
from vibely_realtime.config import settings
from vibely_realtime.domain.aggregates.message_pages import MessagePageSet
from vibely_realtime.domain.aggregates.unread_counters import UnreadCounters
from vibely_realtime.domain.entities.conversation import ConversationSummary
from vibely_realtime.domain.entities.message import Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScrollAnchor:
    """Pre-fetch scroll geometry, used to keep the visible message in place.

    The caller measures; this only does the arithmetic.
    """

    scroll_height: float
    scroll_top: float

    @classmethod
    def capture(cls, scroll_height: float, scroll_top: float) -> ScrollAnchor:
        return cls(scroll_height=scroll_height, scroll_top=scroll_top)

    def restore(self, new_scroll_height: float) -> float:
        return self.scroll_top + (new_scroll_height - self.scroll_height)


class ConversationCacheReconciler:
    """Merges pushed events and REST fetches into one consistent read cache.

    Pushed messages are appended idempotently by ID. Push events that only
    signal staleness never merge fields; they schedule a REST re-fetch, and a
    failed re-fetch leaves the previous cache untouched.
    """

    def __init__(
        self,
        api: MessageApi,
        counters: UnreadCounters,
        *,
        user_id: int | None = None,
        messages_page_size: int | None = None,
        conversations_page_size: int | None = None,
        max_pages: int | None = None,
    ) -> None:
        self._api = api
        self._counters = counters
        self.user_id = user_id
        self._messages_page_size = messages_page_size or settings.MESSAGES_PAGE_SIZE
        self._conversations_page_size = conversations_page_size or settings.CONVERSATIONS_PAGE_SIZE
        self._max_pages = max_pages or settings.MAX_CACHED_PAGES

        self._pages: dict[int, MessagePageSet] = {}
        self._conversations: tuple[ConversationSummary, ...] = ()
        self._conversations_stale = True
        self.last_error: UpstreamError | None = None

        self._refresh_task: asyncio.Task[None] | None = None
        self._refresh_queued = False
        self._refetch_tasks: dict[int, asyncio.Task[None]] = {}
        self._refetch_queued: set[int] = set()

    # Read access

    @property
    def conversations(self) -> tuple[ConversationSummary, ...]:
        return self._conversations

    def messages(self, conversation_id: int) -> list[Message]:
        pages = self._pages.get(conversation_id)
        return list(pages.messages()) if pages is not None else []

    def pages(self, conversation_id: int) -> tuple[tuple[Message, ...], ...]:
        pages = self._pages.get(conversation_id)
        return pages.pages if pages is not None else ()

    def has_more(self, conversation_id: int) -> bool:
        pages = self._pages.get(conversation_id)
        return pages.has_more if pages is not None else True

    def is_stale(self, conversation_id: int | None = None) -> bool:
        """Whether the conversation list (or one conversation's pages) awaits a re-fetch."""
        if conversation_id is None:
            return self._conversations_stale
        pages = self._pages.get(conversation_id)
        return pages is not None and pages.stale

    # Closed conversations

    def trim_conversation(self, conversation_id: int) -> None:
        """Keep only the newest pages of a conversation that is no longer open."""
        pages = self._pages.get(conversation_id)
        if pages is None:
            return
        evicted = pages.trim(self._max_pages)
        if evicted:
            self._counters.forget(conversation_id, evicted)
            logger.debug("Evicted %d cached messages of conversation %s", len(evicted), conversation_id)

    # Push path

    def append_message(self, message: Message) -> bool:
        """Same-conversation append. Returns False if the ID was already cached."""
        pages = self._page_set(message.conversation_id)
        if not pages.append(message):
            logger.debug("Message %s already cached, skipping", message.id)
            return False
        if not message.is_read and message.sender_id != self.user_id:
            self._counters.record(message.conversation_id, message.id)
        return True

    def update_message(self, message: Message) -> bool:
        pages = self._pages.get(message.conversation_id)
        return pages is not None and pages.replace(message)

    def invalidate_conversations(self) -> None:
        self._conversations_stale = True
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_queued = True
            return
        self._refresh_task = asyncio.create_task(self._refresh_loop(), name="conversations-refresh")

    def invalidate_conversation(self, conversation_id: int) -> None:
        pages = self._pages.get(conversation_id)
        if pages is None or not pages.initialized:
            # Nothing cached; the next load fetches fresh data anyway.
            return
        pages.stale = True
        task = self._refetch_tasks.get(conversation_id)
        if task is not None and not task.done():
            self._refetch_queued.add(conversation_id)
            return
        self._refetch_tasks[conversation_id] = asyncio.create_task(
            self._refetch_loop(conversation_id), name=f"messages-refresh-{conversation_id}",
        )

    # REST path

    async def refresh_conversations(self) -> tuple[ConversationSummary, ...]:
        try:
            summaries = await self._api.list_conversations(limit=self._conversations_page_size, offset=0)
        except UpstreamError as exc:
            self._record_failure("conversation list", exc)
            raise
        self._conversations = tuple(summaries)
        self._conversations_stale = False
        self.last_error = None
        for summary in summaries:
            last = summary.last_message
            if last is not None and last.sender_id != self.user_id:
                self._counters.observe(summary.id, [last.id])
        self._counters.replace({s.id: s.unread_count for s in summaries})
        return self._conversations

    async def load_messages(self, conversation_id: int) -> int:
        """Fetch the newest page. Returns how many messages were not cached yet."""
        pages = self._page_set(conversation_id)
        was_initialized = pages.initialized
        batch = await self._fetch(conversation_id, offset=0)
        added = pages.merge_newest(batch)
        if not was_initialized:
            pages.has_more = len(batch) >= self._messages_page_size
        pages.stale = False
        return len(added)

    async def load_older(self, conversation_id: int) -> int:
        """Fetch the next older page. Returns how many messages were added."""
        pages = self._page_set(conversation_id)
        if not pages.initialized:
            return await self.load_messages(conversation_id)
        if not pages.has_more:
            return 0
        batch = await self._fetch(conversation_id, offset=len(pages))
        added = pages.add_older_page(batch)
        if len(batch) < self._messages_page_size:
            pages.has_more = False
        return len(added)

    async def mark_read(self, conversation_id: int, message_ids: Iterable[int]) -> int:
        ids = list(dict.fromkeys(message_ids))
        if not ids:
            return 0
        await self._api.mark_messages_read(ids)
        return self.apply_read(conversation_id, ids)

    def apply_read(self, conversation_id: int, message_ids: Iterable[int]) -> int:
        """Flip only these IDs to read and take them off the unread count.

        Own messages are flipped too but were never counted as unread.
        """
        pages = self._pages.get(conversation_id)
        if pages is None:
            return 0
        newly_read = pages.mark_read(message_ids)
        from_others = [m for m in newly_read if m.sender_id != self.user_id]
        self._counters.mark_read(conversation_id, len(from_others))
        return len(newly_read)

    async def delete_message(self, conversation_id: int, message_id: int) -> None:
        await self._api.delete_message(message_id)
        pages = self._pages.get(conversation_id)
        if pages is not None:
            pages.remove(message_id)
        self.invalidate_conversations()

    def drop_conversation(self, conversation_id: int) -> None:
        self._pages.pop(conversation_id, None)
        self._counters.forget(conversation_id)
        self._refetch_queued.discard(conversation_id)
        task = self._refetch_tasks.pop(conversation_id, None)
        if task is not None:
            task.cancel()
        self._conversations = tuple(c for c in self._conversations if c.id != conversation_id)

    async def close(self) -> None:
        tasks = [t for t in (self._refresh_task, *self._refetch_tasks.values()) if t is not None]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._refresh_task = None
        self._refresh_queued = False
        self._refetch_tasks.clear()
        self._refetch_queued.clear()

    def clear(self) -> None:
        self._pages.clear()
        self._conversations = ()
        self._conversations_stale = True
        self.last_error = None

    # Internals

    def _page_set(self, conversation_id: int) -> MessagePageSet:
        pages = self._pages.get(conversation_id)
        if pages is None:
            pages = self._pages[conversation_id] = MessagePageSet()
        return pages

    async def _fetch(self, conversation_id: int, *, offset: int) -> list[Message]:
        try:
            batch = await self._api.list_messages(
                conversation_id, limit=self._messages_page_size, offset=offset,
            )
        except UpstreamError as exc:
            self._record_failure(f"messages of conversation {conversation_id}", exc)
            raise
        # Already reflected in the server's unread counts.
        self._counters.observe(conversation_id, [m.id for m in batch])
        return batch

    async def _refresh_loop(self) -> None:
        while True:
            self._refresh_queued = False
            try:
                await self.refresh_conversations()
            except UpstreamError:
                pass  # logged and kept in last_error; the list stays stale
            if not self._refresh_queued:
                return

    async def _refetch_loop(self, conversation_id: int) -> None:
        while True:
            self._refetch_queued.discard(conversation_id)
            try:
                await self.load_messages(conversation_id)
            except UpstreamError:
                pass  # logged and kept in last_error; the pages stay stale
            if conversation_id not in self._refetch_queued:
                break
        if self._refetch_tasks.get(conversation_id) is asyncio.current_task():
            del self._refetch_tasks[conversation_id]

    def _record_failure(self, what: str, exc: UpstreamError) -> None:
        self.last_error = exc
        logger.warning("Failed to refresh %s, keeping cached data: %s", what, exc.detail or exc)
