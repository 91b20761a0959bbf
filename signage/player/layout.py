import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from signage.player.tracker import ZonePlaybackTracker
from signage.player.zones import CUSTOM_LAYOUT, DEFAULT_LAYOUT, LayoutConfigError, effective_layout, load_custom_zones
from signage.schemas.alert import AlertOut
from signage.schemas.playlist import PlaylistItemOut, PlaylistOut
from signage.schemas.widget import WidgetOut

logger = logging.getLogger(__name__)

WIDGET_POSITIONS = ("top-left", "top-right", "bottom-left", "bottom-right", "center")
DEFAULT_WIDGET_POSITION = "bottom-right"


@dataclass(frozen=True)
class Rect:
    """Percent of the screen."""

    x: float
    y: float
    width: float
    height: float


FULL_SCREEN = Rect(0, 0, 100, 100)
_THIRD = 100 / 3

ZONE_RECTS: dict[str, dict[str, Rect]] = {
    "single_zone": {"main": FULL_SCREEN},
    "split_vertical": {"left": Rect(0, 0, 50, 100), "right": Rect(50, 0, 50, 100)},
    "split_horizontal": {"top": Rect(0, 0, 100, 50), "bottom": Rect(0, 50, 100, 50)},
    "pip_bottom_right": {"main": FULL_SCREEN, "pip": Rect(73, 73, 25, 25)},
    "grid_2x2": {
        "top_left": Rect(0, 0, 50, 50),
        "top_right": Rect(50, 0, 50, 50),
        "bottom_left": Rect(0, 50, 50, 50),
        "bottom_right": Rect(50, 50, 50, 50),
    },
    "grid_3x3": {
        f"grid_{row * 3 + col + 1}": Rect(col * _THIRD, row * _THIRD, _THIRD, _THIRD)
        for row in range(3)
        for col in range(3)
    },
    "sidebar_left": {"sidebar": Rect(0, 0, 25, 100), "main": Rect(25, 0, 75, 100)},
    "sidebar_right": {"main": Rect(0, 0, 75, 100), "sidebar": Rect(75, 0, 25, 100)},
    "header_footer": {
        "header": Rect(0, 0, 100, 15),
        "main": Rect(0, 15, 100, 70),
        "footer": Rect(0, 85, 100, 15),
    },
    "triple_vertical": {
        "left": Rect(0, 0, _THIRD, 100),
        "center": Rect(_THIRD, 0, _THIRD, 100),
        "right": Rect(2 * _THIRD, 0, _THIRD, 100),
    },
    "triple_horizontal": {
        "top": Rect(0, 0, 100, _THIRD),
        "middle": Rect(0, _THIRD, 100, _THIRD),
        "bottom": Rect(0, 2 * _THIRD, 100, _THIRD),
    },
    "carousel": {"main": FULL_SCREEN},
    "web_scroll": {"main": FULL_SCREEN},
}


@dataclass(frozen=True)
class Region:
    zone: str
    rect: Rect
    item: PlaylistItemOut | None
    failed: bool = False
    object_fit: str = "contain"

    @property
    def placeholder(self) -> bool:
        return self.item is None


@dataclass(frozen=True)
class Composition:
    layout: str
    regions: tuple[Region, ...]
    widgets: tuple[WidgetOut, ...] = ()
    alerts: tuple[AlertOut, ...] = ()

    @property
    def occluded(self) -> bool:
        """Active alerts interrupt zone content entirely."""
        return bool(self.alerts)

    def region(self, zone: str) -> Region | None:
        for region in self.regions:
            if region.zone == zone:
                return region
        return None


def _custom_rect(settings: dict[str, Any]) -> Rect:
    try:
        return Rect(
            float(settings.get("x", 0)),
            float(settings.get("y", 0)),
            float(settings.get("width", 100)),
            float(settings.get("height", 100)),
        )
    except (TypeError, ValueError):
        return FULL_SCREEN


def _zone_settings(playlist: PlaylistOut) -> dict[str, Any]:
    raw = playlist.zone_settings
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        logger.warning("Playlist %s has unreadable zone settings", playlist.id)
        return {}
    return decoded if isinstance(decoded, dict) else {}


def zone_rects(playlist: PlaylistOut, zones: Iterable[str]) -> dict[str, Rect]:
    layout = effective_layout(playlist.layout)
    if layout == CUSTOM_LAYOUT:
        try:
            custom = load_custom_zones(playlist.custom_layout_config)
        except LayoutConfigError:
            custom = {}
        return {zone: _custom_rect(custom[zone]) if zone in custom else FULL_SCREEN for zone in zones}
    table = ZONE_RECTS[layout]
    return {zone: table.get(zone, FULL_SCREEN) for zone in zones}


def widget_position(widget: WidgetOut) -> str:
    position = (widget.position or "").strip().lower()
    return position if position in WIDGET_POSITIONS else DEFAULT_WIDGET_POSITION


def compose(
    playlist: PlaylistOut,
    tracker: ZonePlaybackTracker,
    alerts: Iterable[AlertOut] = (),
    widgets: Iterable[WidgetOut] = (),
) -> Composition:
    settings = _zone_settings(playlist)
    rects = zone_rects(playlist, tracker.zones)
    regions: list[Region] = []
    for zone in tracker.zones:
        item = tracker.current(zone)
        zone_config = settings.get(zone) if isinstance(settings.get(zone), dict) else {}
        regions.append(
            Region(
                zone=zone,
                rect=rects[zone],
                item=item,
                failed=item is not None and tracker.is_failed(zone, item.id),
                object_fit=str(zone_config.get("objectFit") or "contain"),
            )
        )
    return Composition(
        layout=effective_layout(playlist.layout),
        regions=tuple(regions),
        widgets=tuple(widget for widget in widgets if widget.is_enabled),
        alerts=tuple(alerts),
    )
