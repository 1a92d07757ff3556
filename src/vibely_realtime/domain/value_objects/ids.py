from __future__ import annotations

from dataclasses import dataclass

from vibely_realtime.domain.value_objects.enums import ChannelPurpose

# Close codes after which the connection is not re-established.
NORMAL_CLOSURE = 1000
GOING_AWAY = 1001
ABNORMAL_CLOSURE = 1006
INTENTIONAL_CLOSE_CODES = frozenset({NORMAL_CLOSURE, GOING_AWAY})


@dataclass(frozen=True, slots=True)
class ChannelKey:
    """Identifies a logical duplex stream: a user's notifications or one conversation."""

    purpose: ChannelPurpose
    subject_id: int
