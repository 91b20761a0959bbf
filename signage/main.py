import os
import asyncio
import logging
from datetime import datetime, timezone
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from signage.db import Base, engine, ensure_sqlite_schema
from signage.db import SessionLocal
from signage.api import player
from signage.api.player import bearer_token, find_screen_by_token, touch_screen
from signage.models.screen import Screen
from signage.services.realtime import hub

Base.metadata.create_all(bind=engine)
ensure_sqlite_schema()

SCREEN_OFFLINE_AFTER_SEC = int(os.getenv("SIGNAGE_SCREEN_OFFLINE_AFTER_SEC", "150"))
SCREEN_STATUS_SWEEP_SEC = int(os.getenv("SIGNAGE_STATUS_SWEEP_SEC", "5"))
QUIET_ACCESS_LOG = os.getenv("SIGNAGE_QUIET_ACCESS_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}
QUIET_WEBSOCKET_LOG = os.getenv("SIGNAGE_QUIET_WEBSOCKET_LOG", "1").strip().lower() in {"1", "true", "yes", "on"}
_screen_status_task: asyncio.Task | None = None

logger = logging.getLogger(__name__)

if QUIET_ACCESS_LOG:
    # Keep warning/error lines, suppress normal access noise (200/201 etc).
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

if QUIET_WEBSOCKET_LOG:
    # Players on flaky links drop and reconnect constantly; the transport layer
    # logs each drop with a stack trace.
    logging.getLogger("websockets").setLevel(logging.CRITICAL)
    logging.getLogger("uvicorn.protocols.websockets").setLevel(logging.CRITICAL)


def _derive_screen_online(last_seen: datetime | None, now_utc: datetime) -> bool:
    if last_seen is None:
        return False
    age = (now_utc - last_seen).total_seconds()
    return age <= SCREEN_OFFLINE_AFTER_SEC


def sweep_screen_status(now: datetime | None = None) -> list[dict[str, str | bool | None]]:
    changed_payload: list[dict[str, str | bool | None]] = []
    db = SessionLocal()
    try:
        now = now or datetime.utcnow()
        for item in db.query(Screen).all():
            online = _derive_screen_online(item.last_seen, now)
            if bool(item.is_online) != online:
                item.is_online = online
                changed_payload.append(
                    {
                        "screenId": str(item.id),
                        "isOnline": online,
                        "lastSeen": item.last_seen.isoformat() if item.last_seen else None,
                    }
                )
        if changed_payload:
            db.commit()
    except Exception:
        logger.exception("Screen status sweep failed")
        db.rollback()
        changed_payload = []
    finally:
        db.close()
    return changed_payload


async def _screen_status_watcher() -> None:
    while True:
        await asyncio.sleep(SCREEN_STATUS_SWEEP_SEC)
        changed_payload = sweep_screen_status()
        if changed_payload:
            await hub.publish(
                "screen-status-changed",
                {
                    "changes": changed_payload,
                    "offlineAfterSec": SCREEN_OFFLINE_AFTER_SEC,
                },
            )

app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def root():
    return {
        "ok": True,
        "service": "signage-player-gateway",
        "time_utc": datetime.now(timezone.utc).isoformat(),
        "docs": "/docs",
    }

@app.get("/healthz")
def healthz():
    return {"ok": True, "revision": hub.revision, "realtime_clients": hub.client_count}


def _record_ws_heartbeat(screen_id: str) -> None:
    db = SessionLocal()
    try:
        screen = db.get(Screen, screen_id)
        if screen:
            touch_screen(db, screen)
    finally:
        db.close()


@app.websocket("/ws")
async def ws_updates(websocket: WebSocket):
    token = bearer_token(websocket.headers.get("Authorization")) or websocket.query_params.get("token")
    db = SessionLocal()
    try:
        screen = find_screen_by_token(db, token)
        screen_id = screen.id if screen else None
    finally:
        db.close()
    if screen_id is None:
        await websocket.close(code=4401)
        return

    await hub.connect(websocket, screen_id=screen_id)
    try:
        while True:
            raw = await websocket.receive_text()
            message = await hub.receive(websocket, raw)
            if message and message.get("type") == "player-heartbeat":
                _record_ws_heartbeat(screen_id)
    except WebSocketDisconnect:
        await hub.disconnect(websocket)
    except Exception:
        await hub.disconnect(websocket)


@app.on_event("startup")
async def startup_events() -> None:
    global _screen_status_task
    if _screen_status_task is None or _screen_status_task.done():
        _screen_status_task = asyncio.create_task(_screen_status_watcher())


@app.on_event("shutdown")
async def shutdown_events() -> None:
    global _screen_status_task
    if _screen_status_task is not None:
        _screen_status_task.cancel()
        try:
            await _screen_status_task
        except asyncio.CancelledError:
            pass
        _screen_status_task = None

app.include_router(player.router)
