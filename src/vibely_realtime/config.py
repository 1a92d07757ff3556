from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    WS_BASE_URL: str = "ws://localhost:3000"
    API_BASE_URL: str = "http://localhost:3000"

    RECONNECT_MAX_ATTEMPTS: int = 5
    RECONNECT_BASE_DELAY_MS: int = 1000
    RECONNECT_MAX_DELAY_MS: int = 10000

    CONVERSATIONS_PAGE_SIZE: int = 20
    MESSAGES_PAGE_SIZE: int = 50
    NOTIFICATIONS_PAGE_SIZE: int = 20

    NOTIFICATIONS_MAX: int = 200
    MAX_CACHED_PAGES: int = 20

    HTTP_TIMEOUT_SECONDS: float = 15.0

    # Sent as the Cookie header on both transports; the URL carries only routing IDs.
    SESSION_COOKIE: str | None = None

    ALERT_ICON: str = "/notification-icon.png"

    LOG_LEVEL: str = "INFO"

    @property
    def notifications_ws_url(self) -> str:
        return f"{self.WS_BASE_URL.rstrip('/')}/ws/notifications"

    @property
    def chat_ws_url(self) -> str:
        return f"{self.WS_BASE_URL.rstrip('/')}/ws/chat"

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="VIBELY_",
        extra="ignore",
    )


settings = Settings()
