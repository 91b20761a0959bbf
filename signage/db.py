from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy import text
import os

DATABASE_URL = os.getenv("SIGNAGE_DATABASE_URL", "sqlite:///./signage.db")

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=_connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

Base = declarative_base()


def _column_names(conn, table: str) -> set[str]:
    rows = conn.execute(text(f"PRAGMA table_info({table})")).fetchall()
    return {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)


def ensure_sqlite_schema():
    """
    Lightweight runtime schema patching for SQLite.

    `Base.metadata.create_all()` won't add new columns to existing tables.
    This keeps local/dev installs working without requiring Alembic.
    """
    if not DATABASE_URL.startswith("sqlite"):
        return

    with engine.begin() as conn:
        playlist_cols = _column_names(conn, "playlist")
        if playlist_cols:
            if "layout" not in playlist_cols:
                conn.execute(text("ALTER TABLE playlist ADD COLUMN layout VARCHAR(32) DEFAULT 'single_zone'"))
            if "custom_layout_config" not in playlist_cols:
                conn.execute(text("ALTER TABLE playlist ADD COLUMN custom_layout_config TEXT"))
            if "zone_settings" not in playlist_cols:
                conn.execute(text("ALTER TABLE playlist ADD COLUMN zone_settings TEXT"))
            conn.execute(
                text(
                    "UPDATE playlist SET layout='single_zone' "
                    "WHERE layout IS NULL OR trim(layout)=''"
                )
            )

        item_cols = _column_names(conn, "playlist_item")
        if item_cols:
            if "zone" not in item_cols:
                conn.execute(text("ALTER TABLE playlist_item ADD COLUMN zone VARCHAR(50) DEFAULT 'main'"))
            if "custom_duration" not in item_cols:
                conn.execute(text("ALTER TABLE playlist_item ADD COLUMN custom_duration INTEGER"))
            conn.execute(
                text(
                    "UPDATE playlist_item SET zone='main' "
                    "WHERE zone IS NULL OR trim(zone)=''"
                )
            )
            conn.execute(
                text(
                    "UPDATE playlist_item SET custom_duration=NULL "
                    "WHERE custom_duration IS NOT NULL AND custom_duration <= 0"
                )
            )

        screen_cols = _column_names(conn, "screen")
        if screen_cols:
            if "auth_token" not in screen_cols:
                conn.execute(text("ALTER TABLE screen ADD COLUMN auth_token VARCHAR(64)"))
            if "is_online" not in screen_cols:
                conn.execute(text("ALTER TABLE screen ADD COLUMN is_online INTEGER DEFAULT 0"))
            if "last_seen" not in screen_cols:
                conn.execute(text("ALTER TABLE screen ADD COLUMN last_seen DATETIME"))
            try:
                conn.execute(
                    text(
                        "CREATE UNIQUE INDEX IF NOT EXISTS ux_screen_auth_token "
                        "ON screen(auth_token) "
                        "WHERE auth_token IS NOT NULL AND trim(auth_token) <> ''"
                    )
                )
            except Exception:
                pass

        alert_exists = conn.execute(
            text("SELECT name FROM sqlite_master WHERE type='table' AND name='alert'")
        ).fetchone()
        if alert_exists:
            alert_cols = _column_names(conn, "alert")
            if "is_fixed" not in alert_cols:
                conn.execute(text("ALTER TABLE alert ADD COLUMN is_fixed INTEGER DEFAULT 0"))
            if "target_screens" not in alert_cols:
                conn.execute(text("ALTER TABLE alert ADD COLUMN target_screens VARCHAR"))
            conn.execute(
                text(
                    "UPDATE alert SET duration=0 "
                    "WHERE duration IS NULL OR duration < 0"
                )
            )
