"""Pytest configuration and shared fixtures."""

import logging
import os
import tempfile

import pytest

# The gateway binds its engine at import time; point it at a scratch database first.
_DB_DIR = tempfile.mkdtemp(prefix="signage-tests-")
os.environ.setdefault("SIGNAGE_DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'signage.db')}")

from signage.player.config import PlayerConfig  # noqa: E402
from signage.schemas.alert import AlertOut  # noqa: E402
from signage.schemas.playlist import PlaylistOut  # noqa: E402

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


@pytest.fixture
def make_item():
    """Build a playlist item payload the way the gateway serialises it."""

    def _make(item_id, order, zone="main", kind="image", duration=None, custom_duration=None):
        return {
            "id": item_id,
            "playlistId": "pl-1",
            "order": order,
            "zone": zone,
            "customDuration": custom_duration,
            "contentItem": {
                "id": f"c-{item_id}",
                "title": f"Content {item_id}",
                "type": kind,
                "url": f"/storage/media/{item_id}",
                "duration": duration,
            },
        }

    return _make


@pytest.fixture
def make_playlist():
    def _make(items, layout="single_zone", playlist_id="pl-1", **extra):
        payload = {"id": playlist_id, "name": "Lobby", "layout": layout, "items": items}
        payload.update(extra)
        return PlaylistOut.model_validate(payload)

    return _make


@pytest.fixture
def make_alert():
    def _make(alert_id="a-1", duration=30, is_fixed=False, is_active=True, targets=None):
        return AlertOut(
            id=alert_id,
            message=f"Alert {alert_id}",
            duration=duration,
            is_fixed=is_fixed,
            is_active=is_active,
            target_screens=targets,
        )

    return _make


@pytest.fixture
def player_config():
    return PlayerConfig(
        server_url="http://gateway.test",
        screen_token="token-1",
        screen_id="screen-1",
        playlist_id="pl-1",
        heartbeat_interval_sec=0,
        load_retry_sec=0,
    )
