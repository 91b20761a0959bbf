from datetime import datetime

from signage.schemas.common import WireModel


class ScreenOut(WireModel):
    id: str
    name: str
    playlist_id: str | None = None
    is_online: bool = False
    last_seen: datetime | None = None
