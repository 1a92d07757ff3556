from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from vibely_realtime.domain.entities.notification import Notification


def dedupe_and_sort(items: Iterable[Notification]) -> list[Notification]:
    """Keep one entry per ID (the newer ``created_at`` wins), newest first."""
    by_id: dict[int, Notification] = {}
    for n in items:
        existing = by_id.get(n.id)
        if existing is None or n.created_at > existing.created_at:
            by_id[n.id] = n
    return sorted(by_id.values(), key=lambda n: n.created_at, reverse=True)


class NotificationFeed:
    def __init__(self, *, max_items: int) -> None:
        self._items: list[Notification] = []
        self._max_items = max_items

    @property
    def items(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, notification_id: int) -> Notification | None:
        for n in self._items:
            if n.id == notification_id:
                return n
        return None

    def add(self, notification: Notification) -> bool:
        """Merge one notification. Returns True if its ID was not present before."""
        is_new = self.get(notification.id) is None
        self._set([notification, *self._items])
        return is_new

    def extend(self, notifications: Iterable[Notification]) -> None:
        self._set([*self._items, *notifications])

    def replace(self, notifications: Iterable[Notification]) -> None:
        self._set(notifications)

    def mark_read(self, notification_id: int) -> bool:
        """Flip one entry to read. Returns True if it was unread."""
        for i, n in enumerate(self._items):
            if n.id == notification_id:
                if n.is_read:
                    return False
                self._items[i] = replace(n, is_read=True)
                return True
        return False

    def mark_all_read(self) -> None:
        self._items = [n if n.is_read else replace(n, is_read=True) for n in self._items]

    def clear(self) -> None:
        self._items.clear()

    def _set(self, items: Iterable[Notification]) -> None:
        self._items = dedupe_and_sort(items)[: self._max_items]
