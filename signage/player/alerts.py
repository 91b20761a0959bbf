"""Active alerts layered above zone playback.

Each alert that can auto-expire (not fixed, duration > 0) owns exactly one
expiry handle; re-posting an alert replaces its handle instead of stacking a
second one.
"""

import asyncio
import logging
from typing import Awaitable, Callable

from signage.player.errors import PlayerError
from signage.schemas.alert import AlertOut

logger = logging.getLogger(__name__)


class AlertOverlayManager:
    def __init__(
        self,
        acknowledge: Callable[[str], Awaitable[None]] | None = None,
        preview: bool = False,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._acknowledge = acknowledge
        self.preview = preview
        self._on_change = on_change
        # Insertion order == posting order; re-posted alerts move to the end.
        self._alerts: dict[str, AlertOut] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._acks: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts

    def get(self, alert_id: str) -> AlertOut | None:
        return self._alerts.get(alert_id)

    def active(self) -> list[AlertOut]:
        """Active alerts, most recently posted first."""
        return list(reversed(self._alerts.values()))

    def has_timer(self, alert_id: str) -> bool:
        handle = self._timers.get(alert_id)
        return handle is not None and not handle.cancelled()

    def load(self, alerts: list[AlertOut]) -> None:
        for alert in alerts:
            self.upsert(alert)

    def upsert(self, alert: AlertOut) -> bool:
        if not alert.is_active:
            # An update that deactivates a shown alert takes it down.
            if alert.id in self._alerts:
                self._remove(alert.id)
                self._changed()
            return False
        self._alerts.pop(alert.id, None)
        self._alerts[alert.id] = alert
        self._cancel(alert.id)
        if alert.auto_expires:
            loop = asyncio.get_running_loop()
            self._timers[alert.id] = loop.call_later(alert.duration, self.expire, alert.id)
        self._changed()
        return True

    def expire(self, alert_id: str) -> bool:
        if self._remove(alert_id) is None:
            return False
        logger.info("Alert %s expired", alert_id)
        if not self.preview and self._acknowledge is not None:
            task = asyncio.get_running_loop().create_task(self._send_ack(alert_id))
            self._acks.add(task)
            task.add_done_callback(self._acks.discard)
        self._changed()
        return True

    def delete(self, alert_id: str) -> bool:
        if self._remove(alert_id) is None:
            return False
        self._changed()
        return True

    def dismiss(self, alert_id: str) -> bool:
        alert = self._alerts.get(alert_id)
        if alert is None or alert.is_fixed:
            return False
        return self.expire(alert_id)

    def teardown(self) -> None:
        for alert_id in list(self._timers):
            self._cancel(alert_id)
        for task in list(self._acks):
            task.cancel()
        self._acks.clear()
        self._alerts.clear()

    async def _send_ack(self, alert_id: str) -> None:
        try:
            await self._acknowledge(alert_id)
        except PlayerError as exc:
            logger.warning("Could not mark alert %s as expired: %s", alert_id, exc)

    def _remove(self, alert_id: str) -> AlertOut | None:
        self._cancel(alert_id)
        return self._alerts.pop(alert_id, None)

    def _cancel(self, alert_id: str) -> None:
        handle = self._timers.pop(alert_id, None)
        if handle is not None:
            handle.cancel()

    def _changed(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception:
            logger.exception("Render callback failed after alert change")
