"""HTTP client for the content API the player depends on."""

from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from signage.player.config import PlayerConfig
from signage.player.errors import CollaboratorError
from signage.schemas.alert import AlertOut
from signage.schemas.playlist import PlaylistOut
from signage.schemas.screen import ScreenOut
from signage.schemas.widget import WidgetOut

_widgets_adapter = TypeAdapter(list[WidgetOut])
_alerts_adapter = TypeAdapter(list[AlertOut])


class PlayerApiClient:
    """Async client bound to one screen's credentials.

    Every failure (transport error, non-2xx status, unusable body) surfaces
    as CollaboratorError so callers have one thing to catch.
    """

    def __init__(self, config: PlayerConfig, transport: httpx.AsyncBaseTransport | None = None):
        headers = {"Accept": "application/json"}
        if config.screen_token:
            headers["Authorization"] = f"Bearer {config.screen_token}"
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.server_url,
            headers=headers,
            timeout=config.http_timeout_sec,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str) -> Any:
        try:
            response = await self._client.request(method, path)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CollaboratorError(
                f"{method} {path} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"{method} {path} failed: {exc}") from exc
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise CollaboratorError(f"{method} {path} returned invalid JSON") from exc

    async def fetch_screen(self) -> ScreenOut:
        payload = await self._request("GET", "/player/screen")
        try:
            return ScreenOut.model_validate(payload)
        except ValidationError as exc:
            raise CollaboratorError(f"Unexpected screen payload: {exc}") from exc

    async def fetch_playlist(self, playlist_id: str) -> PlaylistOut:
        payload = await self._request("GET", f"/player/playlists/{playlist_id}")
        try:
            return PlaylistOut.model_validate(payload)
        except ValidationError as exc:
            raise CollaboratorError(f"Unexpected playlist payload: {exc}") from exc

    async def fetch_widgets(self) -> list[WidgetOut]:
        payload = await self._request("GET", "/player/widgets")
        try:
            return _widgets_adapter.validate_python(payload or [])
        except ValidationError as exc:
            raise CollaboratorError(f"Unexpected widgets payload: {exc}") from exc

    async def fetch_alerts(self) -> list[AlertOut]:
        payload = await self._request("GET", "/player/alerts")
        try:
            return _alerts_adapter.validate_python(payload or [])
        except ValidationError as exc:
            raise CollaboratorError(f"Unexpected alerts payload: {exc}") from exc

    async def send_heartbeat(self) -> None:
        await self._request("POST", "/screens/heartbeat")

    async def expire_alert(self, alert_id: str) -> None:
        await self._request("POST", f"/player/alerts/{alert_id}/expire")
