"""Owned handle on the realtime websocket.

Lifecycle: connect -> subscribe -> (frames / liveness) -> disconnect. A drop
is not resumable: the channel reconnects with exponential backoff and sends
the full subscription set again on every new connection.
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Callable

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from signage.player.errors import ChannelError
from signage.player.events import RealtimeEvent, decode_event

logger = logging.getLogger(__name__)


class RealtimeChannel:
    def __init__(
        self,
        url: str,
        token: str | None = None,
        connector: Callable[..., Any] | None = None,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
    ) -> None:
        self.url = url
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._connector = connector or ws_connect
        self._subscriptions: set[str] = set()
        self._events: asyncio.Queue = asyncio.Queue()
        self._socket: Any = None
        self._runner: asyncio.Task | None = None
        self._closed = False
        self.connections = 0

    @property
    def connected(self) -> bool:
        return self._socket is not None

    @property
    def subscriptions(self) -> frozenset[str]:
        return frozenset(self._subscriptions)

    async def connect(self) -> None:
        if self._closed:
            raise ChannelError("Realtime channel was already disconnected")
        if self._runner is None or self._runner.done():
            self._runner = asyncio.create_task(self._run(), name="realtime-channel")

    async def subscribe(self, *event_types: str) -> None:
        added = sorted(set(event_types) - self._subscriptions)
        self._subscriptions.update(added)
        if added:
            await self._send_frame({"type": "subscribe", "events": added})

    async def unsubscribe(self, *event_types: str) -> None:
        removed = sorted(set(event_types) & self._subscriptions)
        self._subscriptions.difference_update(removed)
        if removed:
            await self._send_frame({"type": "unsubscribe", "events": removed})

    async def send(self, message: dict[str, Any]) -> bool:
        """Send one frame; False when there is no live connection."""
        return await self._send_frame(message)

    async def next_event(self) -> RealtimeEvent:
        return await self._events.get()

    async def events(self) -> AsyncIterator[RealtimeEvent]:
        while True:
            yield await self._events.get()

    async def disconnect(self) -> None:
        self._closed = True
        runner, self._runner = self._runner, None
        if runner is not None:
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        self._socket = None

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            event = decode_event(raw)
        except Exception:
            # One unreadable frame must not end the receive loop.
            logger.exception("Dropping realtime frame that could not be decoded")
            return
        if event is not None and event.type in self._subscriptions:
            self._events.put_nowait(event)

    async def _send_frame(self, message: dict[str, Any]) -> bool:
        socket = self._socket
        if socket is None:
            return False
        try:
            await socket.send(json.dumps(message))
        except ConnectionClosed:
            logger.warning("Realtime channel closed while sending %s", message.get("type"))
            return False
        return True

    async def _run(self) -> None:
        attempt = 0
        while not self._closed:
            try:
                async with self._connector(self.url, additional_headers=self._headers) as socket:
                    self._socket = socket
                    self.connections += 1
                    attempt = 0
                    logger.info("Realtime channel connected to %s", self.url)
                    if self._subscriptions:
                        await socket.send(
                            json.dumps({"type": "subscribe", "events": sorted(self._subscriptions)})
                        )
                    async for raw in socket:
                        self._dispatch(raw)
            except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
                logger.warning("Realtime channel unavailable: %s", exc)
            finally:
                self._socket = None
            if self._closed:
                break
            delay = min(self.base_delay * 2**attempt, self.max_delay)
            attempt += 1
            logger.info("Reconnecting realtime channel in %.1fs", delay)
            await asyncio.sleep(delay)
