import os
from dataclasses import dataclass

DEFAULT_SERVER_URL = "http://127.0.0.1:8000"

# One uniform fallback when neither the playlist item nor its content item
# carries a duration.
DEFAULT_ITEM_DURATION_SEC = 10.0
# Must stay below the gateway's SIGNAGE_SCREEN_OFFLINE_AFTER_SEC.
DEFAULT_HEARTBEAT_INTERVAL_SEC = 60.0


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_text(name: str) -> str | None:
    value = (os.getenv(name, "") or "").strip()
    return value or None


@dataclass
class PlayerConfig:
    server_url: str = DEFAULT_SERVER_URL
    realtime_url: str | None = None
    screen_token: str | None = None
    screen_id: str | None = None
    playlist_id: str | None = None
    default_item_duration_sec: float = DEFAULT_ITEM_DURATION_SEC
    heartbeat_interval_sec: float = DEFAULT_HEARTBEAT_INTERVAL_SEC
    load_retry_sec: float = 30.0
    http_timeout_sec: float = 10.0
    reconnect_base_delay_sec: float = 1.0
    reconnect_max_delay_sec: float = 30.0
    preview: bool = False

    @property
    def ws_url(self) -> str:
        if self.realtime_url:
            return self.realtime_url
        base = self.server_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):] + "/ws"
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):] + "/ws"
        return base + "/ws"

    @classmethod
    def from_env(cls) -> "PlayerConfig":
        return cls(
            server_url=(_env_text("SIGNAGE_SERVER_URL") or DEFAULT_SERVER_URL).rstrip("/"),
            realtime_url=_env_text("SIGNAGE_REALTIME_URL"),
            screen_token=_env_text("SIGNAGE_SCREEN_TOKEN"),
            screen_id=_env_text("SIGNAGE_SCREEN_ID"),
            playlist_id=_env_text("SIGNAGE_PLAYLIST_ID"),
            default_item_duration_sec=float(
                os.getenv("SIGNAGE_DEFAULT_ITEM_DURATION_SEC", str(DEFAULT_ITEM_DURATION_SEC))
            ),
            heartbeat_interval_sec=float(
                os.getenv("SIGNAGE_HEARTBEAT_INTERVAL_SEC", str(DEFAULT_HEARTBEAT_INTERVAL_SEC))
            ),
            load_retry_sec=float(os.getenv("SIGNAGE_LOAD_RETRY_SEC", "30")),
            http_timeout_sec=float(os.getenv("SIGNAGE_HTTP_TIMEOUT_SEC", "10")),
            reconnect_base_delay_sec=float(os.getenv("SIGNAGE_RECONNECT_BASE_DELAY_SEC", "1")),
            reconnect_max_delay_sec=float(os.getenv("SIGNAGE_RECONNECT_MAX_DELAY_SEC", "30")),
            preview=_env_flag("SIGNAGE_PREVIEW"),
        )
