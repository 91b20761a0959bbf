"""Per-zone playback cursors driven by one-shot timers.

Each zone with content owns at most one pending ``asyncio.TimerHandle``.
Any operation that moves or replaces a cursor cancels the zone's handle
before arming the next one, so a timer can never fire against a queue that
has since been replaced.
"""

import asyncio
import logging
from typing import Callable

from signage.player.config import DEFAULT_ITEM_DURATION_SEC
from signage.player.zones import ZonePartition
from signage.schemas.playlist import PlaylistItemOut

logger = logging.getLogger(__name__)


class ZonePlaybackTracker:
    def __init__(
        self,
        default_duration: float = DEFAULT_ITEM_DURATION_SEC,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self.default_duration = default_duration
        self._on_change = on_change
        self._queues: dict[str, tuple[PlaylistItemOut, ...]] = {}
        self._cursors: dict[str, int] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._armed: dict[str, int] = {}
        self._generation = 0
        self._failed: set[tuple[str, str]] = set()
        self.paused = False
        self._closed = False

    # -- state -----------------------------------------------------------

    @property
    def zones(self) -> tuple[str, ...]:
        return tuple(self._queues)

    @property
    def closed(self) -> bool:
        return self._closed

    def queue(self, zone: str) -> tuple[PlaylistItemOut, ...]:
        return self._queues.get(zone, ())

    def current_index(self, zone: str) -> int:
        index = self._cursors.get(zone, 0)
        size = len(self._queues.get(zone, ()))
        if index < 0 or index >= max(1, size):
            logger.warning("Zone %s cursor %s out of range for %s items, clamping to 0", zone, index, size)
            self._cursors[zone] = 0
            return 0
        return index

    def current(self, zone: str) -> PlaylistItemOut | None:
        queue = self._queues.get(zone, ())
        if not queue:
            return None
        return queue[self.current_index(zone)]

    def has_timer(self, zone: str) -> bool:
        handle = self._timers.get(zone)
        return handle is not None and not handle.cancelled()

    def pending_zones(self) -> tuple[str, ...]:
        return tuple(zone for zone in self._timers if self.has_timer(zone))

    def effective_duration(self, item: PlaylistItemOut) -> float:
        for candidate in (
            item.custom_duration,
            item.content_item.duration if item.content_item else None,
        ):
            if candidate is not None and candidate > 0:
                return float(candidate)
        return float(self.default_duration)

    def is_failed(self, zone: str, item_id: str) -> bool:
        return (zone, item_id) in self._failed

    # -- transitions ---------------------------------------------------------

    def rebuild(self, partition: ZonePartition) -> None:
        """Install freshly partitioned queues; every cursor restarts at 0."""
        self._cancel_all()
        self._queues = dict(partition.queues)
        self._cursors = {zone: 0 for zone in self._queues}
        self._failed.clear()
        self._arm_all()
        self._notify(*self._queues)

    def advance(self, zone: str) -> None:
        queue = self._queues.get(zone, ())
        self._cancel(zone)
        if not queue:
            return
        self._cursors[zone] = (self.current_index(zone) + 1) % len(queue)
        self._arm(zone)
        self._notify(zone)

    def video_ended(self, zone: str, item_id: str) -> bool:
        """Natural end of a video; advances only if that video is still current."""
        if self.paused or self._closed:
            return False
        item = self.current(zone)
        if item is None or item.id != item_id:
            return False
        if item.content_item is None or item.content_item.type != "video":
            return False
        self.advance(zone)
        return True

    def mark_failed(self, zone: str, item_id: str) -> None:
        # The timer keeps running; the renderer swaps in a fallback panel.
        if any(item.id == item_id for item in self._queues.get(zone, ())):
            self._failed.add((zone, item_id))
            self._notify(zone)

    def pause(self) -> None:
        self.paused = True
        self._cancel_all()

    def resume(self) -> None:
        self.paused = False
        self._arm_all()

    def stop(self) -> None:
        self.paused = True
        self._cancel_all()
        self._cursors = {zone: 0 for zone in self._queues}
        self._notify(*self._queues)

    def reset_cursors(self) -> None:
        """Zero every cursor and hold the timers until rearm() or rebuild()."""
        self._cancel_all()
        self._cursors = {zone: 0 for zone in self._queues}
        self._notify(*self._queues)

    def rearm(self) -> None:
        self._arm_all()

    def teardown(self) -> None:
        self._closed = True
        self._cancel_all()

    # -- timers ------------------------------------------------------------

    def _arm_all(self) -> None:
        for zone in self._queues:
            self._arm(zone)

    def _arm(self, zone: str) -> None:
        self._cancel(zone)
        if self._closed or self.paused:
            return
        item = self.current(zone)
        if item is None:
            return
        delay = self.effective_duration(item)
        self._generation += 1
        loop = asyncio.get_running_loop()
        self._timers[zone] = loop.call_later(delay, self._on_timer, zone, self._generation)
        self._armed[zone] = self._generation

    def _on_timer(self, zone: str, generation: int) -> None:
        if self._armed.get(zone) != generation:
            return
        self._timers.pop(zone, None)
        self.advance(zone)

    def _cancel(self, zone: str) -> None:
        self._armed.pop(zone, None)
        handle = self._timers.pop(zone, None)
        if handle is not None:
            handle.cancel()

    def _cancel_all(self) -> None:
        for zone in list(self._timers):
            self._cancel(zone)

    def _notify(self, *zones: str) -> None:
        if self._on_change is None:
            return
        for zone in zones:
            try:
                self._on_change(zone)
            except Exception:
                logger.exception("Render callback failed for zone %s", zone)
