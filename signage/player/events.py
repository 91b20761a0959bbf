"""Realtime event records.

Every frame arriving on the realtime channel is decoded exactly once, here,
into one of the event classes below. Frames with an unknown ``type`` or a
payload that does not fit its record are dropped.
"""

import json
import logging
from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter, ValidationError

from signage.schemas.alert import AlertOut, AlertRef
from signage.schemas.common import WireModel

logger = logging.getLogger(__name__)


class PlaylistRef(WireModel):
    playlist_id: str | None = None
    screen_id: str | None = None
    item_id: str | None = None


class PlaybackCommand(WireModel):
    action: Literal["play", "pause", "stop"]
    screen_id: str | None = None


class PlaylistContentUpdated(WireModel):
    type: Literal["playlist-content-updated"]
    data: PlaylistRef = PlaylistRef()


class PlaylistItemDeleted(WireModel):
    type: Literal["playlist-item-deleted"]
    data: PlaylistRef = PlaylistRef()


class ContentDeletedFromPlaylist(WireModel):
    type: Literal["content-deleted-from-playlist"]
    data: PlaylistRef = PlaylistRef()


class PlaylistChanged(WireModel):
    type: Literal["playlist-change"]
    data: PlaylistRef = PlaylistRef()


class ScreenPlaylistUpdated(WireModel):
    type: Literal["screen-playlist-updated"]
    data: PlaylistRef = PlaylistRef()


class PlaybackControl(WireModel):
    type: Literal["playback-control"]
    data: PlaybackCommand


class AlertPosted(WireModel):
    type: Literal["alert"]
    data: AlertOut


class AlertDeleted(WireModel):
    type: Literal["alert-deleted"]
    data: AlertRef


RealtimeEvent = Annotated[
    Union[
        PlaylistContentUpdated,
        PlaylistItemDeleted,
        ContentDeletedFromPlaylist,
        PlaylistChanged,
        ScreenPlaylistUpdated,
        PlaybackControl,
        AlertPosted,
        AlertDeleted,
    ],
    Field(discriminator="type"),
]

EVENT_TYPES: tuple[str, ...] = (
    "playlist-content-updated",
    "playlist-item-deleted",
    "content-deleted-from-playlist",
    "playlist-change",
    "screen-playlist-updated",
    "playback-control",
    "alert",
    "alert-deleted",
)

HEARTBEAT_TYPE = "player-heartbeat"

_event_adapter: TypeAdapter = TypeAdapter(RealtimeEvent)


def decode_event(raw: str | bytes | dict) -> RealtimeEvent | None:
    if isinstance(raw, (str, bytes)):
        try:
            message = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("Dropping realtime frame that is not JSON")
            return None
    else:
        message = raw
    if not isinstance(message, dict):
        return None
    if message.get("type") not in EVENT_TYPES:
        logger.debug("Ignoring realtime frame of type %r", message.get("type"))
        return None
    if message.get("data") is None:
        message = {**message, "data": {}}
    try:
        return _event_adapter.validate_python(message)
    except ValidationError as exc:
        logger.warning("Dropping malformed %s event: %s", message.get("type"), exc.errors()[:1])
        return None
