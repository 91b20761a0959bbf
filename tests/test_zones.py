"""Tests for the zone partitioner."""

import json
import logging

from signage.player.zones import LAYOUT_ZONES, ZonePartition, load_custom_zones, partition, zone_names

logger = logging.getLogger(__name__)


def _ids(queue):
    return [item.id for item in queue]


def test_split_vertical_round_trip(make_playlist, make_item):
    playlist = make_playlist(
        [make_item("A", 2, "left"), make_item("B", 1, "right"), make_item("C", 1, "left")],
        layout="split_vertical",
    )

    result = partition(playlist)

    assert result.zones == ("left", "right")
    assert _ids(result.queue("left")) == ["C", "A"]
    assert _ids(result.queue("right")) == ["B"]


def test_partition_is_idempotent(make_playlist, make_item):
    playlist = make_playlist(
        [make_item("A", 1, "top"), make_item("B", 2, "bottom"), make_item("C", 0, "top")],
        layout="split_horizontal",
    )

    assert partition(playlist) == partition(playlist)


def test_every_canonical_zone_gets_a_queue(make_playlist, make_item):
    result = partition(make_playlist([make_item("A", 1, "main")], layout="header_footer"))

    assert result.zones == ("header", "main", "footer")
    assert result.queue("header") == ()
    assert result.queue("footer") == ()


def test_items_outside_layout_are_not_scheduled(make_playlist, make_item):
    playlist = make_playlist(
        [make_item("A", 1, "main"), make_item("B", 2, "sidebar")],
        layout="single_zone",
    )

    result = partition(playlist)

    assert result.scheduled_ids() == {"A"}
    assert len(playlist.items) == 2


def test_order_ties_keep_playlist_order(make_playlist, make_item):
    playlist = make_playlist([make_item("X", 1), make_item("Y", 1), make_item("Z", 0)])

    assert _ids(partition(playlist).queue("main")) == ["Z", "X", "Y"]


def test_grid_3x3_zone_names():
    assert zone_names("grid_3x3") == tuple(f"grid_{index}" for index in range(1, 10))
    assert LAYOUT_ZONES["sidebar_left"] == ("sidebar", "main")


def test_unknown_layout_plays_as_single_zone(make_playlist, make_item, caplog):
    with caplog.at_level(logging.WARNING):
        result = partition(make_playlist([make_item("A", 1)], layout="hexagon"))

    assert result.layout == "single_zone"
    assert _ids(result.queue("main")) == ["A"]
    assert "Unknown layout" in caplog.text


def test_custom_layout_zone_list(make_playlist, make_item):
    config = json.dumps({"zones": [{"id": "ticker", "x": 0, "y": 90, "width": 100, "height": 10}, {"id": "hero"}]})
    playlist = make_playlist(
        [make_item("A", 1, "hero"), make_item("B", 1, "ticker"), make_item("C", 1, "main")],
        layout="custom_layout",
        customLayoutConfig=config,
    )

    result = partition(playlist)

    assert result.zones == ("ticker", "hero")
    assert result.scheduled_ids() == {"A", "B"}
    assert not result.degraded


def test_custom_layout_zone_mapping():
    zones = load_custom_zones({"zones": {"left": {"x": 0, "width": 40}, "right": None}})

    assert list(zones) == ["left", "right"]
    assert zones["right"] == {}


def test_custom_layout_without_config_uses_main(make_playlist, make_item):
    playlist = make_playlist(
        [make_item("A", 1, "main"), make_item("B", 2, "hero")],
        layout="custom_layout",
    )

    result = partition(playlist)

    assert result.zones == ("main",)
    assert _ids(result.queue("main")) == ["A"]
    assert not result.degraded


def test_malformed_custom_layout_collapses_into_main(make_playlist, make_item, caplog):
    playlist = make_playlist(
        [make_item("A", 2, "hero"), make_item("B", 1, "ticker")],
        layout="custom_layout",
        customLayoutConfig="{not json",
    )

    with caplog.at_level(logging.WARNING):
        result = partition(playlist)

    assert result == ZonePartition(layout="custom_layout", queues={"main": result.queue("main")}, degraded=True)
    assert _ids(result.queue("main")) == ["B", "A"]
    assert "customLayoutConfig" in caplog.text
