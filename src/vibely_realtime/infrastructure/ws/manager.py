"""Client-side connection manager: one persistent connection per channel URL."""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from vibely_realtime.application.exceptions import TransportClosed
from vibely_realtime.application.ports.clock import LoopScheduler, Scheduler, TimerHandle
from vibely_realtime.application.ports.transport import Connection, Connector
from vibely_realtime.config import settings
from vibely_realtime.domain.value_objects.enums import ConnectionState
from vibely_realtime.domain.value_objects.ids import (
    ABNORMAL_CLOSURE,
    INTENTIONAL_CLOSE_CODES,
    NORMAL_CLOSURE,
)

logger = logging.getLogger(__name__)

MessageCallback = Callable[[dict[str, Any]], Awaitable[None] | None]
StateCallback = Callable[[], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class ChannelHandlers:
    on_message: MessageCallback
    on_connect: StateCallback | None = None
    on_disconnect: StateCallback | None = None


@dataclass(frozen=True, slots=True)
class ReconnectPolicy:
    max_attempts: int = 5
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000

    @classmethod
    def from_settings(cls) -> ReconnectPolicy:
        return cls(
            max_attempts=settings.RECONNECT_MAX_ATTEMPTS,
            base_delay_ms=settings.RECONNECT_BASE_DELAY_MS,
            max_delay_ms=settings.RECONNECT_MAX_DELAY_MS,
        )

    def delay_ms(self, attempts: int) -> int:
        return min(2**attempts * self.base_delay_ms, self.max_delay_ms)


class ConnectionHandle:
    """One channel's connection state. Created and driven by ConnectionManager."""

    def __init__(self, url: str | None, handlers: ChannelHandlers) -> None:
        self.url = url or ""
        self.handlers = handlers
        self.state = ConnectionState.CLOSED
        self.attempts = 0
        # Every callback dispatch checks this first.
        self.live = bool(self.url)
        self._connection: Connection | None = None
        self._timer: TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.OPEN

    @property
    def reconnect_pending(self) -> bool:
        return self._timer is not None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __repr__(self) -> str:
        return f"<ConnectionHandle {self.url or '(disabled)'} state={self.state} attempts={self.attempts}>"


class ConnectionManager:
    """Opens, reconnects and tears down channel connections.

    A transport closure with a code other than 1000/1001 schedules a reconnect
    with exponential backoff, ``min(2**attempts * base, max)`` ms, until
    ``max_attempts`` reconnects have been used. A successful connect resets
    the attempt counter.
    """

    def __init__(
        self,
        connector: Connector,
        *,
        scheduler: Scheduler | None = None,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self._connector = connector
        self._scheduler = scheduler or LoopScheduler()
        self._policy = policy or ReconnectPolicy.from_settings()
        self._handles: dict[str, ConnectionHandle] = {}
        self._background: set[asyncio.Task[None]] = set()

    def open(self, url: str | None, handlers: ChannelHandlers) -> ConnectionHandle:
        handle = ConnectionHandle(url, handlers)
        if not handle.enabled:
            logger.debug("No channel URL, connection disabled")
            return handle

        previous = self._handles.get(handle.url)
        if previous is not None:
            self._spawn(self._finish_close(previous, *self._begin_close(previous)))
        self._handles[handle.url] = handle
        self._start(handle)
        return handle

    async def send(self, handle: ConnectionHandle, payload: dict[str, Any]) -> bool:
        """Send one JSON frame. Returns False if the frame was not handed to the transport."""
        if not handle.enabled:
            logger.debug("Dropping %s frame on disabled channel", payload.get("type"))
            return False
        connection = handle._connection
        if connection is None or handle.state is not ConnectionState.OPEN:
            logger.warning("Channel %s is not connected, cannot send %s", handle.url, payload.get("type"))
            return False
        try:
            await connection.send(json.dumps(payload))
        except TransportClosed as exc:
            logger.warning("Send on %s failed, transport closed (%s)", handle.url, exc.code)
            return False
        return True

    async def close(self, handle: ConnectionHandle) -> None:
        """Intentional close: no reconnect, no further callbacks after this returns."""
        connection, was_open = self._begin_close(handle)
        await self._finish_close(handle, connection, was_open)

    async def shutdown(self) -> None:
        for handle in list(self._handles.values()):
            await self.close(handle)
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def _begin_close(self, handle: ConnectionHandle) -> tuple[Connection | None, bool]:
        handle._cancel_timer()
        if not handle.live:
            return None, False
        handle.live = False
        was_open = handle.state is ConnectionState.OPEN
        handle.state = ConnectionState.CLOSED
        if self._handles.get(handle.url) is handle:
            del self._handles[handle.url]
        connection, handle._connection = handle._connection, None
        return connection, was_open

    async def _finish_close(
        self,
        handle: ConnectionHandle,
        connection: Connection | None,
        was_open: bool,
    ) -> None:
        if connection is not None:
            try:
                await connection.close(NORMAL_CLOSURE, "Manual disconnect")
            except Exception:
                logger.debug("Error while closing %s", handle.url, exc_info=True)
        if was_open:
            logger.info("Disconnected from %s (closed by client)", handle.url)
            await self._call(handle, handle.handlers.on_disconnect)

    def _start(self, handle: ConnectionHandle) -> None:
        handle._cancel_timer()
        handle.state = ConnectionState.CONNECTING
        handle._task = asyncio.create_task(self._run(handle), name=f"ws-{handle.url}")

    def _reconnect(self, handle: ConnectionHandle) -> None:
        handle._timer = None
        if not handle.live:
            return
        handle.attempts += 1
        self._start(handle)

    async def _run(self, handle: ConnectionHandle) -> None:
        logger.info("Attempting connection to %s", handle.url)
        try:
            connection = await self._connector.connect(handle.url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Connection to %s failed: %s", handle.url, exc)
            await self._on_closed(handle, ABNORMAL_CLOSURE, str(exc))
            return

        if not handle.live:
            await connection.close(NORMAL_CLOSURE, "Closed while connecting")
            return

        handle._connection = connection
        handle.state = ConnectionState.OPEN
        handle.attempts = 0
        logger.info("Connected to %s", handle.url)
        await self._invoke(handle, handle.handlers.on_connect)

        code, reason = ABNORMAL_CLOSURE, ""
        try:
            while handle.live:
                raw = await connection.recv()
                await self._dispatch_frame(handle, raw)
        except TransportClosed as exc:
            code, reason = exc.code, exc.reason
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Transport error on %s", handle.url)
        finally:
            if handle._connection is connection:
                handle._connection = None
        await self._on_closed(handle, code, reason)

    async def _on_closed(self, handle: ConnectionHandle, code: int, reason: str) -> None:
        if not handle.live:
            return
        handle.state = ConnectionState.CLOSED
        logger.info("Disconnected from %s code=%s reason=%s", handle.url, code, reason)
        await self._invoke(handle, handle.handlers.on_disconnect)
        if not handle.live or code in INTENTIONAL_CLOSE_CODES:
            return

        if handle.attempts >= self._policy.max_attempts:
            logger.warning(
                "Giving up on %s after %d reconnect attempts", handle.url, handle.attempts,
            )
            if self._handles.get(handle.url) is handle:
                del self._handles[handle.url]
            return

        delay_ms = self._policy.delay_ms(handle.attempts)
        logger.info(
            "Reconnecting to %s in %dms (attempt %d/%d)",
            handle.url,
            delay_ms,
            handle.attempts + 1,
            self._policy.max_attempts,
        )
        handle.state = ConnectionState.RECONNECTING
        handle._timer = self._scheduler.call_later(delay_ms / 1000, lambda: self._reconnect(handle))

    async def _dispatch_frame(self, handle: ConnectionHandle, raw: str) -> None:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Dropping malformed frame on %s: %.200r", handle.url, raw)
            return
        if not isinstance(data, dict):
            logger.warning("Dropping non-object frame on %s: %.200r", handle.url, raw)
            return
        logger.debug("Frame on %s: type=%s", handle.url, data.get("type"))
        await self._invoke(handle, handle.handlers.on_message, data)

    async def _invoke(self, handle: ConnectionHandle, callback: Callable[..., Any] | None, *args: Any) -> None:
        if not handle.live:
            return
        await self._call(handle, callback, *args)

    async def _call(self, handle: ConnectionHandle, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Channel handler failed on %s", handle.url)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
