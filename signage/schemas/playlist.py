from typing import Any

from signage.schemas.common import WireModel
from signage.schemas.content import ContentItemOut


class PlaylistItemOut(WireModel):
    id: str
    playlist_id: str | None = None
    order: int = 0
    zone: str | None = "main"
    custom_duration: float | None = None
    content_item: ContentItemOut | None = None


class PlaylistOut(WireModel):
    id: str
    name: str = ""
    layout: str | None = "single_zone"
    # JSON text or an already decoded object; parsed by the player.
    custom_layout_config: Any = None
    zone_settings: Any = None
    items: list[PlaylistItemOut] = []
