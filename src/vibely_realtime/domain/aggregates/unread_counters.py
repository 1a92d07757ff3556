"""Per-conversation and session-wide unread message counters."""
from __future__ import annotations

from collections.abc import Iterable, Mapping


class UnreadCounters:
    """Unread counts that never go negative and never count a message twice.

    Per-conversation counts come from REST summaries and from pushed messages.
    The session aggregate is additionally bumped by ``new_message`` notices
    that carry no message ID, and is recomputed whenever summaries arrive.
    """

    def __init__(self) -> None:
        self._counts: dict[int, int] = {}
        self._counted: dict[int, set[int]] = {}
        self._total = 0

    @property
    def total(self) -> int:
        return self._total

    def count(self, conversation_id: int) -> int:
        return self._counts.get(conversation_id, 0)

    def record(self, conversation_id: int, message_id: int) -> bool:
        """Count one pushed unread message. Idempotent per message ID."""
        counted = self._counted.setdefault(conversation_id, set())
        if message_id in counted:
            return False
        counted.add(message_id)
        self._counts[conversation_id] = self.count(conversation_id) + 1
        self._total += 1
        return True

    def observe(self, conversation_id: int, message_ids: Iterable[int]) -> None:
        """Remember IDs already reflected in server counts so a later push is not counted."""
        self._counted.setdefault(conversation_id, set()).update(message_ids)

    def bump_total(self) -> None:
        self._total += 1

    def replace(self, counts: Mapping[int, int]) -> None:
        self._counts = {cid: max(0, n) for cid, n in counts.items()}
        self._total = sum(self._counts.values())

    def mark_read(self, conversation_id: int, read: int) -> None:
        if read <= 0:
            return
        before = self.count(conversation_id)
        after = max(0, before - read)
        self._counts[conversation_id] = after
        self._total = max(0, self._total - (before - after))

    def forget(self, conversation_id: int, message_ids: Iterable[int] | None = None) -> None:
        if message_ids is None:
            self._counted.pop(conversation_id, None)
            removed = self._counts.pop(conversation_id, 0)
            self._total = max(0, self._total - removed)
            return
        counted = self._counted.get(conversation_id)
        if counted:
            counted.difference_update(message_ids)

    def clear(self) -> None:
        self._counts.clear()
        self._counted.clear()
        self._total = 0
