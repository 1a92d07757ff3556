from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)


class PresenceTracker:
    """Online user IDs as last reported on the notification channel.

    The set survives a disconnect; the ``presence_init`` snapshot sent after
    every (re)connect replaces it in full.
    """

    def __init__(self) -> None:
        self._online: set[int] = set()

    def replace(self, user_ids: Iterable[int]) -> None:
        self._online = {uid for uid in user_ids if uid}
        logger.debug("Presence snapshot: %d users online", len(self._online))

    def apply(self, user_id: int, is_online: bool) -> None:
        if is_online:
            self._online.add(user_id)
        else:
            self._online.discard(user_id)

    def is_online(self, user_id: int | None) -> bool:
        if not user_id:
            return False
        return user_id in self._online

    @property
    def online_users(self) -> frozenset[int]:
        return frozenset(self._online)

    def clear(self) -> None:
        self._online.clear()
