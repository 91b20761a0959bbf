import json
import logging
from typing import Any

from signage.schemas.common import WireModel

logger = logging.getLogger(__name__)


class WidgetOut(WireModel):
    id: str
    type: str
    name: str = ""
    position: str | None = "top-right"
    is_enabled: bool = True
    settings: Any = None

    def parsed_settings(self) -> dict[str, Any]:
        raw = self.settings
        if raw is None or raw == "":
            return {}
        if isinstance(raw, dict):
            return raw
        try:
            decoded = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Widget %s has unreadable settings, using defaults", self.id)
            return {}
        return decoded if isinstance(decoded, dict) else {}
