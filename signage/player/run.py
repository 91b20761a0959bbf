"""Headless player entry point: ``python -m signage.player.run``."""

import asyncio
import contextlib
import logging
import os
import signal

from signage.player.channel import RealtimeChannel
from signage.player.client import PlayerApiClient
from signage.player.config import PlayerConfig
from signage.player.layout import Composition, widget_position
from signage.player.reconciler import RealtimeReconciler
from signage.player.session import PlayerSession

logger = logging.getLogger("signage.player")


def describe(composition: Composition) -> str:
    if composition.occluded:
        top = composition.alerts[0]
        return f"alert {top.id} ({top.alert_type}/{top.position}): {top.message}"
    parts = []
    for region in composition.regions:
        if region.placeholder:
            parts.append(f"{region.zone}=<empty>")
            continue
        title = region.item.content_item.title if region.item.content_item else region.item.id
        parts.append(f"{region.zone}={title}{' [failed]' if region.failed else ''}")
    for widget in composition.widgets:
        parts.append(f"{widget.type}@{widget_position(widget)}")
    return f"{composition.layout}: " + ", ".join(parts)


def log_composition(composition: Composition) -> None:
    logger.info("Render %s", describe(composition))


async def run(config: PlayerConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is unavailable on Windows event loops
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with PlayerApiClient(config) as api:
        session = PlayerSession(config, api, on_render=log_composition)
        channel = RealtimeChannel(
            config.ws_url,
            token=config.screen_token,
            base_delay=config.reconnect_base_delay_sec,
            max_delay=config.reconnect_max_delay_sec,
        )
        reconciler = RealtimeReconciler(session, channel, api, config)
        await session.start()
        await reconciler.start()
        logger.info("Player running for screen %s (status=%s)", session.screen_id, session.status)
        try:
            await stop.wait()
        finally:
            await reconciler.stop()
            session.teardown()


def main() -> None:
    logging.basicConfig(
        level=os.getenv("SIGNAGE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(run(PlayerConfig.from_env()))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
