"""Playback context for one screen.

The session owns everything derived from the assigned playlist: the zone
partition, the zone tracker, the alert overlay and the widget list. A soft
refresh re-partitions in place; a reload throws the whole context away and
builds a new one.
"""

import asyncio
import logging
from typing import Callable

from signage.player.alerts import AlertOverlayManager
from signage.player.client import PlayerApiClient
from signage.player.config import PlayerConfig
from signage.player.errors import PlayerError
from signage.player.layout import Composition, compose
from signage.player.tracker import ZonePlaybackTracker
from signage.player.zones import ZonePartition, partition
from signage.schemas.playlist import PlaylistOut
from signage.schemas.widget import WidgetOut

logger = logging.getLogger(__name__)

STATUS_IDLE = "idle"  # paired, no playlist assigned
STATUS_LOADING = "loading"
STATUS_PLAYING = "playing"
STATUS_ERROR = "error"  # playlist could not be loaded; retry pending


class PlayerSession:
    def __init__(
        self,
        config: PlayerConfig,
        api: PlayerApiClient,
        on_render: Callable[[Composition], None] | None = None,
    ) -> None:
        self.config = config
        self.api = api
        self._on_render = on_render
        self.screen_id = config.screen_id
        self.playlist_id = config.playlist_id
        self.status = STATUS_IDLE
        self.error: str | None = None
        self.playlist: PlaylistOut | None = None
        self.partition: ZonePartition | None = None
        self.widgets: list[WidgetOut] = []
        self.tracker = self._new_tracker()
        self.alerts = self._new_alerts()
        self._retry_handle: asyncio.TimerHandle | None = None
        self._retry_task: asyncio.Task | None = None

    def _new_tracker(self) -> ZonePlaybackTracker:
        return ZonePlaybackTracker(
            default_duration=self.config.default_item_duration_sec,
            on_change=lambda zone: self.render(),
        )

    def _new_alerts(self) -> AlertOverlayManager:
        return AlertOverlayManager(
            acknowledge=self.api.expire_alert,
            preview=self.config.preview,
            on_change=self.render,
        )

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        if self.screen_id is None or self.playlist_id is None:
            try:
                screen = await self.api.fetch_screen()
            except PlayerError as exc:
                logger.error("Could not identify screen: %s", exc)
                self._fail(str(exc))
                return
            self.screen_id = self.screen_id or screen.id
            if self.playlist_id is None:
                self.playlist_id = screen.playlist_id
        await self._load()

    async def reload(self, playlist_id: str | None) -> None:
        """Tear the context down and rebuild it for ``playlist_id``."""
        self.teardown()
        self.tracker = self._new_tracker()
        self.alerts = self._new_alerts()
        self.playlist = None
        self.partition = None
        self.widgets = []
        self.playlist_id = playlist_id
        await self._load()

    async def retry(self) -> None:
        if self.status != STATUS_ERROR:
            return
        self._cancel_retry()
        if self.screen_id is None:
            await self.start()
        else:
            await self._load()

    def teardown(self) -> None:
        """Cancel every armed timer owned by the context in one step."""
        self._cancel_retry()
        self.tracker.teardown()
        self.alerts.teardown()

    async def _load(self) -> None:
        if self.playlist_id is None:
            logger.info("Screen %s has no playlist assigned", self.screen_id)
            self.status = STATUS_IDLE
            self.render()
            return
        self.status = STATUS_LOADING
        try:
            playlist = await self.api.fetch_playlist(self.playlist_id)
        except PlayerError as exc:
            logger.error("Playlist %s could not be loaded: %s", self.playlist_id, exc)
            self._fail(str(exc))
            return
        self.error = None
        self._install(playlist)
        self.status = STATUS_PLAYING

        try:
            self.alerts.load(await self.api.fetch_alerts())
        except PlayerError as exc:
            logger.warning("Alerts unavailable, continuing without them: %s", exc)
        if not self.config.preview:
            try:
                self.widgets = await self.api.fetch_widgets()
            except PlayerError as exc:
                logger.warning("Widgets unavailable, continuing without them: %s", exc)
                self.widgets = []
        self.render()

    def _install(self, playlist: PlaylistOut) -> None:
        self.playlist = playlist
        self.partition = partition(playlist)
        self.tracker.rebuild(self.partition)
        logger.info(
            "Playing %r (%s) with zones %s",
            playlist.name,
            self.partition.layout,
            {zone: len(queue) for zone, queue in self.partition.queues.items()},
        )

    def _fail(self, message: str) -> None:
        self.status = STATUS_ERROR
        self.error = message
        self._cancel_retry()
        if self.config.load_retry_sec > 0:
            loop = asyncio.get_running_loop()
            self._retry_handle = loop.call_later(self.config.load_retry_sec, self._spawn_retry)
        self.render()

    def _spawn_retry(self) -> None:
        self._retry_handle = None
        self._retry_task = asyncio.get_running_loop().create_task(self.retry())

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        task, self._retry_task = self._retry_task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    # -- reconciliation hooks --------------------------------------------------

    async def refresh(self) -> None:
        """Soft refresh: cursors to 0 now, then refetch and re-partition."""
        if self.status == STATUS_ERROR:
            await self.retry()
            return
        self.tracker.reset_cursors()
        if self.playlist_id is None:
            return
        try:
            playlist = await self.api.fetch_playlist(self.playlist_id)
        except PlayerError as exc:
            logger.warning("Refresh of playlist %s failed, keeping current queues: %s", self.playlist_id, exc)
            self.tracker.rearm()
            return
        self._install(playlist)

    def play(self) -> None:
        self.tracker.resume()

    def pause(self) -> None:
        self.tracker.pause()

    def stop(self) -> None:
        self.tracker.stop()

    def video_ended(self, zone: str, item_id: str) -> bool:
        return self.tracker.video_ended(zone, item_id)

    def content_failed(self, zone: str, item_id: str) -> None:
        logger.warning("Content %s failed to load in zone %s", item_id, zone)
        self.tracker.mark_failed(zone, item_id)

    # -- rendering ---------------------------------------------------------

    def composition(self) -> Composition | None:
        if self.playlist is None or self.status != STATUS_PLAYING:
            return None
        return compose(self.playlist, self.tracker, self.alerts.active(), self.widgets)

    def render(self) -> None:
        if self._on_render is None:
            return
        composition = self.composition()
        if composition is not None:
            self._on_render(composition)
