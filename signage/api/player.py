from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from signage.db import SessionLocal
from signage.models.alert import Alert
from signage.models.content import ContentItem
from signage.models.playlist import Playlist, PlaylistItem
from signage.models.screen import Screen
from signage.models.widget import Widget
from signage.schemas.alert import AlertOut
from signage.schemas.content import ContentItemOut
from signage.schemas.playlist import PlaylistItemOut, PlaylistOut
from signage.schemas.screen import ScreenOut
from signage.schemas.widget import WidgetOut

router = APIRouter(tags=["player"])


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _normalize_entity_id(value: str, field_name: str) -> str:
    normalized = (value or "").strip()
    if normalized.startswith("{") and normalized.endswith("}"):
        normalized = normalized[1:-1].strip()
    if not normalized:
        raise HTTPException(status_code=400, detail=f"{field_name} is required")
    return normalized


def bearer_token(authorization: str | None) -> str | None:
    raw = (authorization or "").strip()
    if raw.lower().startswith("bearer "):
        raw = raw[7:].strip()
    return raw or None


def find_screen_by_token(db: Session, token: str | None) -> Screen | None:
    if not token:
        return None
    return db.query(Screen).filter(Screen.auth_token == token).first()


def get_screen(request: Request, db: Session = Depends(get_db)) -> Screen:
    screen = find_screen_by_token(db, bearer_token(request.headers.get("Authorization")))
    if not screen:
        raise HTTPException(status_code=401, detail="Unknown screen token")
    return screen


def touch_screen(db: Session, screen: Screen, now: datetime | None = None) -> Screen:
    screen.last_seen = now or datetime.utcnow()
    screen.is_online = True
    db.commit()
    db.refresh(screen)
    return screen


def _split_csv(csv: str | None) -> list[str]:
    output: list[str] = []
    for item in (csv or "").split(","):
        value = item.strip()
        if value and value not in output:
            output.append(value)
    return output


def _alert_out(alert: Alert) -> AlertOut:
    return AlertOut(
        id=alert.id,
        message=alert.message,
        duration=alert.duration or 0,
        is_fixed=bool(alert.is_fixed),
        is_active=bool(alert.is_active),
        background_color=alert.background_color,
        text_color=alert.text_color,
        alert_type=alert.alert_type,
        position=alert.position,
        target_screens=_split_csv(alert.target_screens) or None,
    )


def _alert_targets(alert: Alert, screen_id: str) -> bool:
    targets = _split_csv(alert.target_screens)
    return not targets or screen_id in targets


@router.get("/player/screen", response_model=ScreenOut)
def current_screen(screen: Screen = Depends(get_screen)):
    return ScreenOut.model_validate(screen)


@router.get("/player/playlists/{playlist_id}", response_model=PlaylistOut)
def playlist_for_player(
    playlist_id: str,
    screen: Screen = Depends(get_screen),
    db: Session = Depends(get_db),
):
    playlist_id = _normalize_entity_id(playlist_id, "playlist_id")
    playlist = db.get(Playlist, playlist_id)
    if not playlist:
        raise HTTPException(status_code=404, detail="Playlist not found")
    items = (
        db.query(PlaylistItem)
        .filter(PlaylistItem.playlist_id == playlist_id)
        .order_by(PlaylistItem.order.asc(), PlaylistItem.id.asc())
        .all()
    )
    content_ids = list({item.content_item_id for item in items})
    contents = {
        row.id: row
        for row in db.query(ContentItem).filter(ContentItem.id.in_(content_ids)).all()
    } if content_ids else {}

    item_rows: list[PlaylistItemOut] = []
    for item in items:
        content = contents.get(item.content_item_id)
        item_rows.append(
            PlaylistItemOut(
                id=item.id,
                playlist_id=item.playlist_id,
                order=item.order,
                zone=item.zone or "main",
                custom_duration=item.custom_duration,
                content_item=ContentItemOut.model_validate(content) if content else None,
            )
        )
    return PlaylistOut(
        id=playlist.id,
        name=playlist.name,
        layout=playlist.layout or "single_zone",
        custom_layout_config=playlist.custom_layout_config,
        zone_settings=playlist.zone_settings,
        items=item_rows,
    )


@router.get("/player/widgets", response_model=list[WidgetOut])
def widgets_for_player(screen: Screen = Depends(get_screen), db: Session = Depends(get_db)):
    rows = db.query(Widget).filter(Widget.is_enabled.is_(True)).all()
    return [WidgetOut.model_validate(row) for row in rows]


@router.get("/player/alerts", response_model=list[AlertOut])
def alerts_for_player(screen: Screen = Depends(get_screen), db: Session = Depends(get_db)):
    rows = db.query(Alert).filter(Alert.is_active.is_(True)).all()
    return [_alert_out(row) for row in rows if _alert_targets(row, screen.id)]


@router.post("/player/alerts/{alert_id}/expire")
def expire_alert(alert_id: str, screen: Screen = Depends(get_screen), db: Session = Depends(get_db)):
    alert_id = _normalize_entity_id(alert_id, "alert_id")
    alert = db.get(Alert, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Alert not found")
    if alert.is_active and not alert.is_fixed:
        alert.is_active = False
        db.commit()
    return {"ok": True}


@router.post("/screens/heartbeat")
def heartbeat(screen: Screen = Depends(get_screen), db: Session = Depends(get_db)):
    screen = touch_screen(db, screen)
    return {"ok": True, "lastSeen": screen.last_seen.isoformat()}
