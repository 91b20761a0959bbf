import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fastapi import WebSocket


@dataclass
class _Client:
    screen_id: str | None = None
    # None until the client sends a subscribe frame; until then it gets everything.
    subscriptions: set[str] | None = field(default=None)

    def wants(self, event_type: str) -> bool:
        return self.subscriptions is None or event_type in self.subscriptions


class RealtimeHub:
    def __init__(self) -> None:
        self._clients: dict[WebSocket, _Client] = {}
        self._lock = asyncio.Lock()
        self._revision = 0

    async def connect(self, websocket: WebSocket, screen_id: str | None = None) -> None:
        await websocket.accept()
        async with self._lock:
            self._clients[websocket] = _Client(screen_id=screen_id)
        await websocket.send_text(
            json.dumps(
                {
                    "type": "hello",
                    "revision": self._revision,
                    "ts": datetime.now(timezone.utc).isoformat(),
                }
            )
        )

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self._clients.pop(websocket, None)

    async def receive(self, websocket: WebSocket, raw: str) -> dict[str, Any] | None:
        """Parse one inbound frame; subscribe frames are consumed here."""
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            return None
        if not isinstance(message, dict):
            return None
        if message.get("type") == "subscribe":
            events = message.get("events") or []
            async with self._lock:
                client = self._clients.get(websocket)
                if client is not None:
                    if client.subscriptions is None:
                        client.subscriptions = set()
                    client.subscriptions.update(str(item) for item in events)
            return None
        if message.get("type") == "unsubscribe":
            events = message.get("events") or []
            async with self._lock:
                client = self._clients.get(websocket)
                if client is not None and client.subscriptions is not None:
                    client.subscriptions.difference_update(str(item) for item in events)
            return None
        return message

    async def publish(self, event_type: str, data: dict[str, Any] | None = None) -> int:
        self._revision += 1
        message = json.dumps(
            {
                "type": event_type,
                "revision": self._revision,
                "data": data or {},
                "ts": datetime.now(timezone.utc).isoformat(),
            }
        )
        async with self._lock:
            clients = [ws for ws, client in self._clients.items() if client.wants(event_type)]

        stale: list[WebSocket] = []
        for client in clients:
            try:
                await client.send_text(message)
            except Exception:
                stale.append(client)

        if stale:
            async with self._lock:
                for client in stale:
                    self._clients.pop(client, None)
        return self._revision

    def subscriptions_of(self, websocket: WebSocket) -> set[str] | None:
        client = self._clients.get(websocket)
        return None if client is None else client.subscriptions

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def client_count(self) -> int:
        return len(self._clients)


hub = RealtimeHub()
