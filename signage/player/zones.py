"""Split a playlist's items into per-zone playback queues.

The zone names a playlist can schedule into are fixed by its layout. Items
tagged with any other zone stay in the playlist but are left out of the
queues until the layout changes to one that has their zone.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from signage.schemas.playlist import PlaylistItemOut, PlaylistOut

logger = logging.getLogger(__name__)

DEFAULT_ZONE = "main"
DEFAULT_LAYOUT = "single_zone"
CUSTOM_LAYOUT = "custom_layout"

LAYOUT_ZONES: dict[str, tuple[str, ...]] = {
    "single_zone": ("main",),
    "split_vertical": ("left", "right"),
    "split_horizontal": ("top", "bottom"),
    "pip_bottom_right": ("main", "pip"),
    "grid_2x2": ("top_left", "top_right", "bottom_left", "bottom_right"),
    "grid_3x3": tuple(f"grid_{index}" for index in range(1, 10)),
    "sidebar_left": ("sidebar", "main"),
    "sidebar_right": ("main", "sidebar"),
    "header_footer": ("header", "main", "footer"),
    "triple_vertical": ("left", "center", "right"),
    "triple_horizontal": ("top", "middle", "bottom"),
    "carousel": ("main",),
    "web_scroll": ("main",),
}


class LayoutConfigError(ValueError):
    pass


def load_custom_zones(config: Any) -> dict[str, dict[str, Any]]:
    """Return zone name -> rectangle settings from a custom layout config.

    Accepts the JSON text stored with the playlist or an already decoded
    object, with ``zones`` either as a list of ``{"id": ..., "x": ...}``
    entries or as a mapping keyed by zone name. Missing config yields an
    empty mapping; unreadable config raises LayoutConfigError.
    """
    if config is None or config == "":
        return {}
    data = config
    if isinstance(config, (str, bytes)):
        try:
            data = json.loads(config)
        except json.JSONDecodeError as exc:
            raise LayoutConfigError(f"customLayoutConfig is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise LayoutConfigError("customLayoutConfig must be a JSON object")

    zones = data.get("zones") or []
    output: dict[str, dict[str, Any]] = {}
    if isinstance(zones, list):
        for index, zone in enumerate(zones):
            if not isinstance(zone, dict) or not str(zone.get("id", "")).strip():
                raise LayoutConfigError(f"customLayoutConfig.zones[{index}] has no id")
            output[str(zone["id"]).strip()] = zone
    elif isinstance(zones, dict):
        for name, rect in zones.items():
            output[str(name)] = rect if isinstance(rect, dict) else {}
    else:
        raise LayoutConfigError("customLayoutConfig.zones must be a list or an object")
    return output


@dataclass(frozen=True)
class ZonePartition:
    layout: str
    queues: Mapping[str, tuple[PlaylistItemOut, ...]] = field(default_factory=dict)
    # True when a broken custom layout collapsed everything into "main".
    degraded: bool = False

    @property
    def zones(self) -> tuple[str, ...]:
        return tuple(self.queues)

    def queue(self, zone: str) -> tuple[PlaylistItemOut, ...]:
        return self.queues.get(zone, ())

    def scheduled_ids(self) -> set[str]:
        return {item.id for queue in self.queues.values() for item in queue}


def effective_layout(layout: str | None) -> str:
    """Layout name playback actually uses; unknown names fall back to single_zone."""
    layout = layout or DEFAULT_LAYOUT
    return layout if layout in LAYOUT_ZONES or layout == CUSTOM_LAYOUT else DEFAULT_LAYOUT


def zone_names(layout: str | None, custom_layout_config: Any = None) -> tuple[str, ...]:
    """Canonical zone names for a layout; raises LayoutConfigError for a broken custom config."""
    layout = layout or DEFAULT_LAYOUT
    if layout == CUSTOM_LAYOUT:
        return tuple(load_custom_zones(custom_layout_config)) or (DEFAULT_ZONE,)
    if layout not in LAYOUT_ZONES:
        logger.warning("Unknown layout %r, playing it as %s", layout, DEFAULT_LAYOUT)
        return LAYOUT_ZONES[DEFAULT_LAYOUT]
    return LAYOUT_ZONES[layout]


def partition(playlist: PlaylistOut) -> ZonePartition:
    layout = playlist.layout or DEFAULT_LAYOUT
    degraded = False
    try:
        names = zone_names(layout, playlist.custom_layout_config)
    except LayoutConfigError as exc:
        logger.warning("Playlist %s: %s; playing every item in %r", playlist.id, exc, DEFAULT_ZONE)
        names = (DEFAULT_ZONE,)
        degraded = True

    queues: dict[str, list[PlaylistItemOut]] = {name: [] for name in names}
    for item in playlist.items:
        zone = DEFAULT_ZONE if degraded else (item.zone or DEFAULT_ZONE)
        if zone in queues:
            queues[zone].append(item)

    return ZonePartition(
        layout=effective_layout(layout),
        queues={name: tuple(sorted(items, key=lambda item: item.order)) for name, items in queues.items()},
        degraded=degraded,
    )
