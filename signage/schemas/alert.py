from signage.schemas.common import WireModel


class AlertOut(WireModel):
    id: str
    message: str = ""
    duration: float = 0
    is_fixed: bool = False
    is_active: bool = False
    background_color: str | None = "#ef4444"
    text_color: str | None = "#ffffff"
    alert_type: str | None = "banner"
    position: str | None = "top"
    target_screens: list[str] | None = None

    @property
    def auto_expires(self) -> bool:
        return not self.is_fixed and self.duration > 0


class AlertRef(WireModel):
    id: str
