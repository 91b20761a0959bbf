"""Applies realtime events to the running session, one at a time."""

import asyncio
import contextlib
import logging
from datetime import datetime, timezone

from signage.player.channel import RealtimeChannel
from signage.player.client import PlayerApiClient
from signage.player.config import PlayerConfig
from signage.player.errors import PlayerError
from signage.player.events import (
    EVENT_TYPES,
    HEARTBEAT_TYPE,
    AlertDeleted,
    AlertPosted,
    ContentDeletedFromPlaylist,
    PlaybackControl,
    PlaylistChanged,
    PlaylistContentUpdated,
    PlaylistItemDeleted,
    RealtimeEvent,
    ScreenPlaylistUpdated,
)
from signage.player.session import PlayerSession

logger = logging.getLogger(__name__)

IGNORED = "ignored"
REFRESHED = "refresh"
RELOADED = "reload"


class RealtimeReconciler:
    def __init__(
        self,
        session: PlayerSession,
        channel: RealtimeChannel,
        api: PlayerApiClient,
        config: PlayerConfig,
    ) -> None:
        self.session = session
        self.channel = channel
        self.api = api
        self.config = config
        self._consumer: asyncio.Task | None = None
        self._heartbeat: asyncio.Task | None = None

    async def start(self) -> None:
        await self.channel.connect()
        await self.channel.subscribe(*EVENT_TYPES)
        self._consumer = asyncio.create_task(self._consume(), name="realtime-reconciler")
        self.start_heartbeat()

    async def stop(self) -> None:
        await self.stop_heartbeat()
        consumer, self._consumer = self._consumer, None
        if consumer is not None:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        await self.channel.disconnect()

    async def _consume(self) -> None:
        async for event in self.channel.events():
            try:
                await self.reconcile(event)
            except Exception:
                logger.exception("Failed to apply %s event", event.type)

    # -- filters ---------------------------------------------------------

    def _for_this_screen(self, screen_id: str | None) -> bool:
        return screen_id is not None and screen_id == self.session.screen_id

    def _for_this_screen_or_all(self, screen_id: str | None) -> bool:
        # Playback commands without a screen id go to every screen.
        return screen_id is None or self._for_this_screen(screen_id)

    def _for_this_playlist(self, playlist_id: str | None) -> bool:
        return playlist_id is not None and playlist_id == self.session.playlist_id

    # -- reactions -------------------------------------------------------

    async def reconcile(self, event: RealtimeEvent) -> str:
        """Apply one event; returns the reaction taken."""
        if isinstance(event, (PlaylistContentUpdated, PlaylistItemDeleted)):
            if not self._for_this_playlist(event.data.playlist_id):
                return self._skip(event)
            await self.session.refresh()
            return REFRESHED

        if isinstance(event, ContentDeletedFromPlaylist):
            if not self._for_this_screen(event.data.screen_id) or not self._for_this_playlist(
                event.data.playlist_id
            ):
                return self._skip(event)
            await self.session.refresh()
            return REFRESHED

        if isinstance(event, PlaylistChanged):
            if not self._for_this_screen(event.data.screen_id):
                return self._skip(event)
            if event.data.playlist_id == self.session.playlist_id:
                return self._skip(event)
            await self.reload(event.data.playlist_id)
            return RELOADED

        if isinstance(event, ScreenPlaylistUpdated):
            if not self._for_this_screen(event.data.screen_id):
                return self._skip(event)
            if event.data.playlist_id != self.session.playlist_id:
                await self.reload(event.data.playlist_id)
                return RELOADED
            await self.session.refresh()
            return REFRESHED

        if isinstance(event, PlaybackControl):
            if not self._for_this_screen_or_all(event.data.screen_id):
                return self._skip(event)
            action = event.data.action
            logger.info("Playback command: %s", action)
            if action == "play":
                self.session.play()
            elif action == "pause":
                self.session.pause()
            else:
                self.session.stop()
            return action

        if isinstance(event, AlertPosted):
            targets = event.data.target_screens
            if targets and self.session.screen_id not in targets:
                return self._skip(event)
            self.session.alerts.upsert(event.data)
            return "alert"

        if isinstance(event, AlertDeleted):
            self.session.alerts.delete(event.data.id)
            return "alert-deleted"

        return self._skip(event)

    def _skip(self, event: RealtimeEvent) -> str:
        logger.debug("Event %s does not apply to screen %s", event.type, self.session.screen_id)
        return IGNORED

    async def reload(self, playlist_id: str | None) -> None:
        logger.info("Screen %s switching to playlist %s", self.session.screen_id, playlist_id)
        await self.stop_heartbeat()
        try:
            await self.session.reload(playlist_id)
        finally:
            self.start_heartbeat()

    # -- heartbeat ---------------------------------------------------------

    def start_heartbeat(self) -> None:
        if self.config.heartbeat_interval_sec <= 0:
            return
        if self._heartbeat is None or self._heartbeat.done():
            self._heartbeat = asyncio.create_task(self._heartbeat_loop(), name="player-heartbeat")

    async def stop_heartbeat(self) -> None:
        task, self._heartbeat = self._heartbeat, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _heartbeat_loop(self) -> None:
        while True:
            await self.send_heartbeat()
            await asyncio.sleep(self.config.heartbeat_interval_sec)

    async def send_heartbeat(self) -> str:
        """Liveness ping; the channel when connected, HTTP otherwise."""
        if self.channel.connected:
            sent = await self.channel.send(
                {
                    "type": HEARTBEAT_TYPE,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "screenId": self.session.screen_id,
                }
            )
            if sent:
                return "channel"
        try:
            await self.api.send_heartbeat()
        except PlayerError as exc:
            logger.warning("Heartbeat failed: %s", exc)
            return "failed"
        return "http"
