"""Alert presenter for headless runs: alerts become log records."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from vibely_realtime.domain.value_objects.enums import AlertPermission

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Alert:
    title: str
    tag: str
    icon: str | None = None


class LoggingAlertPresenter:
    """Implements application.ports.alerts.AlertPresenter.

    Keeps the currently visible alerts by tag, so re-delivery of one
    notification replaces its alert instead of stacking a second one.
    """

    def __init__(self, permission: AlertPermission = AlertPermission.DEFAULT, *, grant: bool = True) -> None:
        self._permission = permission
        self._grant = grant
        self._visible: dict[str, Alert] = {}

    @property
    def permission(self) -> AlertPermission:
        return self._permission

    @property
    def visible(self) -> tuple[Alert, ...]:
        return tuple(self._visible.values())

    async def request_permission(self) -> AlertPermission:
        if self._permission is AlertPermission.DEFAULT:
            self._permission = AlertPermission.GRANTED if self._grant else AlertPermission.DENIED
        return self._permission

    def show(self, title: str, *, tag: str, icon: str | None = None) -> None:
        if self._permission is not AlertPermission.GRANTED:
            logger.debug("Alert %s suppressed, permission is %s", tag, self._permission)
            return
        replaced = tag in self._visible
        self._visible[tag] = Alert(title=title, tag=tag, icon=icon)
        logger.info("ALERT [%s]%s %s", tag, " (replaced)" if replaced else "", title)
