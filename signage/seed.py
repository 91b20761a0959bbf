import json
import os
import secrets
from sqlalchemy.orm import Session
from signage.db import SessionLocal, Base, engine, ensure_sqlite_schema
from signage.models.alert import Alert
from signage.models.content import ContentItem
from signage.models.playlist import Playlist, PlaylistItem
from signage.models.screen import Screen
from signage.models.widget import Widget


def seed() -> str:
    """Populate a demo screen; returns its auth token for SIGNAGE_SCREEN_TOKEN."""
    Base.metadata.create_all(bind=engine)
    ensure_sqlite_schema()
    db: Session = SessionLocal()
    try:
        contents = []
        for title, kind, url, duration in [
            ("Welcome", "image", "/storage/media/welcome.png", 8),
            ("Promo Reel", "video", "/storage/media/promo.mp4", 15),
            ("Menu Board", "pdf", "/storage/media/menu.pdf", None),
            ("Opening Hours", "webpage", "https://example.com/hours", 20),
        ]:
            content = ContentItem(title=title, type=kind, url=url, duration=duration)
            db.add(content)
            contents.append(content)
        db.commit()

        playlist = Playlist(
            name="Lobby",
            layout="sidebar_left",
            zone_settings=json.dumps({"main": {"objectFit": "cover"}}),
        )
        db.add(playlist)
        db.commit()
        db.refresh(playlist)

        for order, (content, zone, custom_duration) in enumerate(
            [
                (contents[0], "main", None),
                (contents[1], "main", 20),
                (contents[2], "sidebar", None),
                (contents[3], "sidebar", None),
            ],
            start=1,
        ):
            db.add(
                PlaylistItem(
                    playlist_id=playlist.id,
                    content_item_id=content.id,
                    order=order,
                    zone=zone,
                    custom_duration=custom_duration,
                )
            )

        token = os.getenv("SIGNAGE_SEED_SCREEN_TOKEN") or secrets.token_hex(16)
        screen = Screen(name="Lobby Screen", playlist_id=playlist.id, auth_token=token)
        db.add(screen)

        db.add(Alert(message="Fire drill at 15:00", duration=60, is_active=False, alert_type="banner"))
        db.add(Widget(type="clock", name="Clock", position="top-right", settings=json.dumps({"format": "24h"})))
        db.add(
            Widget(
                type="weather",
                name="Weather",
                position="bottom-right",
                settings=json.dumps({"city": "Jakarta", "units": "metric"}),
            )
        )
        db.commit()
        return token
    finally:
        db.close()


if __name__ == "__main__":
    print(f"Seeded demo screen, token: {seed()}")
