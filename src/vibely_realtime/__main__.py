"""Entrypoint: python -m vibely_realtime --user-id N [--conversation-id M]

Tails the notification channel (and optionally one conversation's chat
channel) and logs what arrives.
"""
from __future__ import annotations

import argparse
import asyncio
import logging

from vibely_realtime.application.exceptions import UpstreamError
from vibely_realtime.config import settings
from vibely_realtime.domain.value_objects.enums import AlertPermission
from vibely_realtime.infrastructure.alerts.presenter import LoggingAlertPresenter
from vibely_realtime.infrastructure.http.client import create_session
from vibely_realtime.infrastructure.http.message_api import AiohttpMessageApi
from vibely_realtime.infrastructure.http.notification_api import AiohttpNotificationApi
from vibely_realtime.infrastructure.ws.manager import ConnectionManager
from vibely_realtime.infrastructure.ws.websockets_transport import WebSocketConnector
from vibely_realtime.services.session import RealtimeSession

logger = logging.getLogger("vibely_realtime")


class _StopOnLogout:
    def __init__(self) -> None:
        self.done = asyncio.Event()

    async def logout(self) -> None:
        logger.info("Session ended")
        self.done.set()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vibely_realtime", description=__doc__.splitlines()[0])
    parser.add_argument("--user-id", type=int, required=True)
    parser.add_argument("--conversation-id", type=int, default=None)
    parser.add_argument("--no-alerts", action="store_true", help="deny alert permission")
    return parser.parse_args(argv)


async def run(user_id: int, conversation_id: int | None, *, alerts_enabled: bool = True) -> None:
    headers = {"Cookie": settings.SESSION_COOKIE} if settings.SESSION_COOKIE else None
    manager = ConnectionManager(WebSocketConnector(headers=headers))
    stopper = _StopOnLogout()

    async with create_session() as http:
        session = RealtimeSession(
            manager,
            message_api=AiohttpMessageApi(http),
            notification_api=AiohttpNotificationApi(http),
            alerts=LoggingAlertPresenter(AlertPermission.DEFAULT, grant=alerts_enabled),
            terminator=stopper,
        )
        await session.start(user_id)
        if conversation_id:
            await session.open_conversation(conversation_id)
            try:
                added = await session.reconciler.load_messages(conversation_id)
            except UpstreamError as exc:
                logger.warning("Could not load history of conversation %s: %s", conversation_id, exc)
            else:
                logger.info("Loaded %d messages of conversation %s", added, conversation_id)
        try:
            await stopper.done.wait()
        finally:
            if not stopper.done.is_set():
                await session.terminate()
            await manager.shutdown()


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(args.user_id, args.conversation_id, alerts_enabled=not args.no_alerts))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
