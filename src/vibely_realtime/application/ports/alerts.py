from __future__ import annotations

from typing import Protocol

from vibely_realtime.domain.value_objects.enums import AlertPermission


class AlertPresenter(Protocol):
    """User-facing alerts raised outside the app window."""

    @property
    def permission(self) -> AlertPermission: ...

    async def request_permission(self) -> AlertPermission: ...

    def show(self, title: str, *, tag: str, icon: str | None = None) -> None:
        """Show an alert. A second alert with the same tag replaces the first."""
        ...
