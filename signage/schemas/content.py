from signage.schemas.common import WireModel


class ContentItemOut(WireModel):
    id: str
    title: str = ""
    type: str
    url: str | None = None
    duration: float | None = None
