"""Paginated per-conversation message history held by the client."""
from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import replace

from vibely_realtime.domain.entities.message import Message


class MessagePageSet:
    """Pages of one conversation's history.

    ``pages[0]`` is the newest page; each further page is older. Within a page
    messages run oldest to newest. A message ID appears at most once across
    all pages.
    """

    def __init__(self) -> None:
        self._pages: list[list[Message]] = []
        self._ids: set[int] = set()
        self.has_more = True
        self.stale = False

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def initialized(self) -> bool:
        return bool(self._pages)

    @property
    def pages(self) -> tuple[tuple[Message, ...], ...]:
        return tuple(tuple(page) for page in self._pages)

    def messages(self) -> Iterator[Message]:
        """All cached messages, oldest first."""
        for page in reversed(self._pages):
            yield from page

    def get(self, message_id: int) -> Message | None:
        if message_id not in self._ids:
            return None
        for page in self._pages:
            for message in page:
                if message.id == message_id:
                    return message
        return None

    def append(self, message: Message) -> bool:
        """Append a pushed message to the newest page unless already cached."""
        if message.id in self._ids:
            return False
        if not self._pages:
            self._pages.append([message])
        else:
            self._pages[0].append(message)
        self._ids.add(message.id)
        return True

    def merge_newest(self, messages: Iterable[Message]) -> list[Message]:
        """Fold a refetched newest page in without disturbing cached entries."""
        fresh = self._unseen(messages)
        if not fresh:
            return []
        if not self._pages:
            self._pages.append(fresh)
        else:
            newest = self._pages[0]
            for message in fresh:
                bisect.insort(newest, message, key=lambda m: m.sort_key)
        self._ids.update(m.id for m in fresh)
        return fresh

    def add_older_page(self, messages: Iterable[Message]) -> list[Message]:
        """Append an older page. Returns the messages that were not cached yet."""
        fresh = self._unseen(messages)
        if fresh:
            self._pages.append(fresh)
            self._ids.update(m.id for m in fresh)
        return fresh

    def trim(self, max_pages: int) -> set[int]:
        """Drop the oldest pages beyond ``max_pages``. Returns the evicted IDs."""
        evicted: set[int] = set()
        while len(self._pages) > max(max_pages, 1):
            evicted |= {m.id for m in self._pages.pop()}
        if evicted:
            self._ids -= evicted
            self.has_more = True
        return evicted

    def replace(self, message: Message) -> bool:
        if message.id not in self._ids:
            return False
        for page in self._pages:
            for i, existing in enumerate(page):
                if existing.id == message.id:
                    page[i] = message
                    return True
        return False

    def mark_read(self, message_ids: Iterable[int]) -> list[Message]:
        """Flip the read flag of the given IDs in place. Returns the messages that were unread."""
        wanted = set(message_ids) & self._ids
        newly_read: list[Message] = []
        if not wanted:
            return newly_read
        for page in self._pages:
            for i, message in enumerate(page):
                if message.id in wanted and not message.is_read:
                    page[i] = replace(message, is_read=True)
                    newly_read.append(page[i])
        return newly_read

    def remove(self, message_id: int) -> bool:
        if message_id not in self._ids:
            return False
        for page in self._pages:
            for i, message in enumerate(page):
                if message.id == message_id:
                    del page[i]
                    self._ids.discard(message_id)
                    return True
        return False

    def _unseen(self, messages: Iterable[Message]) -> list[Message]:
        seen: set[int] = set()
        fresh: list[Message] = []
        for message in messages:
            if message.id in self._ids or message.id in seen:
                continue
            seen.add(message.id)
            fresh.append(message)
        fresh.sort(key=lambda m: m.sort_key)
        return fresh
