"""Tests for the player's HTTP client against a mocked gateway."""

import httpx
import pytest

from signage.player.client import PlayerApiClient
from signage.player.errors import CollaboratorError


def _gateway(routes, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        key = (request.method, request.url.path)
        if key not in routes:
            return httpx.Response(404, json={"detail": "Not Found"})
        status, body = routes[key]
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_fetch_playlist_sends_bearer_token(player_config, make_item):
    seen = []
    routes = {
        ("GET", "/player/playlists/pl-1"): (
            200,
            {"id": "pl-1", "name": "Lobby", "layout": "split_vertical", "items": [make_item("A", 1, "left")]},
        )
    }
    async with PlayerApiClient(player_config, transport=_gateway(routes, seen)) as api:
        playlist = await api.fetch_playlist("pl-1")

    assert playlist.layout == "split_vertical"
    assert playlist.items[0].content_item.type == "image"
    assert seen[0].headers["Authorization"] == "Bearer token-1"


@pytest.mark.asyncio
async def test_fetch_screen_widgets_and_alerts(player_config):
    routes = {
        ("GET", "/player/screen"): (200, {"id": "screen-1", "name": "Lobby", "playlistId": "pl-9"}),
        ("GET", "/player/widgets"): (200, [{"id": "w-1", "type": "clock", "position": "top-left"}]),
        ("GET", "/player/alerts"): (200, [{"id": "a-1", "message": "Hi", "duration": 0, "isActive": True}]),
    }
    async with PlayerApiClient(player_config, transport=_gateway(routes)) as api:
        screen = await api.fetch_screen()
        widgets = await api.fetch_widgets()
        alerts = await api.fetch_alerts()

    assert screen.playlist_id == "pl-9"
    assert widgets[0].position == "top-left"
    assert alerts[0].is_active and not alerts[0].auto_expires


@pytest.mark.asyncio
async def test_posts_heartbeat_and_expiry(player_config):
    seen = []
    routes = {
        ("POST", "/screens/heartbeat"): (200, {"ok": True, "lastSeen": "2026-01-01T00:00:00"}),
        ("POST", "/player/alerts/a-1/expire"): (200, {"ok": True}),
    }
    async with PlayerApiClient(player_config, transport=_gateway(routes, seen)) as api:
        await api.send_heartbeat()
        await api.expire_alert("a-1")

    assert [(request.method, request.url.path) for request in seen] == [
        ("POST", "/screens/heartbeat"),
        ("POST", "/player/alerts/a-1/expire"),
    ]


@pytest.mark.asyncio
async def test_errors_surface_as_collaborator_error(player_config):
    routes = {
        ("GET", "/player/playlists/broken"): (200, "<html>"),
        ("GET", "/player/playlists/shape"): (200, {"name": "no id"}),
    }
    async with PlayerApiClient(player_config, transport=_gateway(routes)) as api:
        with pytest.raises(CollaboratorError, match="status 404"):
            await api.fetch_playlist("missing")
        with pytest.raises(CollaboratorError, match="invalid JSON"):
            await api.fetch_playlist("broken")
        with pytest.raises(CollaboratorError, match="Unexpected playlist payload"):
            await api.fetch_playlist("shape")


@pytest.mark.asyncio
async def test_transport_failure(player_config):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with PlayerApiClient(player_config, transport=httpx.MockTransport(handler)) as api:
        with pytest.raises(CollaboratorError, match="connection refused"):
            await api.send_heartbeat()
