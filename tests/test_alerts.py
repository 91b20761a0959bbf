"""Tests for the alert overlay and its expiry timers."""

import asyncio
import logging

import pytest

from signage.player.alerts import AlertOverlayManager
from signage.player.errors import CollaboratorError

logger = logging.getLogger(__name__)


class AckRecorder:
    def __init__(self, fail=False):
        self.calls = []
        self.fail = fail

    async def __call__(self, alert_id):
        self.calls.append(alert_id)
        if self.fail:
            raise CollaboratorError("gateway down")


@pytest.mark.asyncio
async def test_duration_zero_never_expires(make_alert):
    manager = AlertOverlayManager(acknowledge=AckRecorder())

    manager.upsert(make_alert("a-1", duration=0))
    await asyncio.sleep(0.05)

    assert "a-1" in manager
    assert not manager.has_timer("a-1")
    manager.teardown()


@pytest.mark.asyncio
async def test_fixed_alert_has_no_timer(make_alert):
    manager = AlertOverlayManager()

    manager.upsert(make_alert("a-1", duration=5, is_fixed=True))

    assert not manager.has_timer("a-1")
    assert manager.dismiss("a-1") is False
    assert "a-1" in manager
    manager.teardown()


@pytest.mark.asyncio
async def test_expiry_removes_and_acknowledges(make_alert):
    ack = AckRecorder()
    manager = AlertOverlayManager(acknowledge=ack)

    manager.upsert(make_alert("a-1", duration=0.05))
    await asyncio.sleep(0.15)

    assert "a-1" not in manager
    assert ack.calls == ["a-1"]


@pytest.mark.asyncio
async def test_reposting_replaces_the_timer(make_alert):
    ack = AckRecorder()
    manager = AlertOverlayManager(acknowledge=ack)
    manager.upsert(make_alert("a-1", duration=0.05))

    manager.upsert(make_alert("a-1", duration=5))
    await asyncio.sleep(0.15)

    assert "a-1" in manager
    assert len(manager._timers) == 1
    assert ack.calls == []
    manager.teardown()


@pytest.mark.asyncio
async def test_reposting_as_manual_cancels_expiry(make_alert):
    manager = AlertOverlayManager()
    manager.upsert(make_alert("a-1", duration=0.05))

    manager.upsert(make_alert("a-1", duration=0))
    await asyncio.sleep(0.1)

    assert "a-1" in manager
    manager.teardown()


@pytest.mark.asyncio
async def test_inactive_update_takes_alert_down(make_alert):
    manager = AlertOverlayManager()
    manager.upsert(make_alert("a-1"))

    assert manager.upsert(make_alert("a-1", is_active=False)) is False
    assert "a-1" not in manager
    assert manager.upsert(make_alert("a-2", is_active=False)) is False
    assert len(manager) == 0


@pytest.mark.asyncio
async def test_delete_does_not_acknowledge(make_alert):
    ack = AckRecorder()
    manager = AlertOverlayManager(acknowledge=ack)
    manager.upsert(make_alert("a-1", duration=0.05))

    assert manager.delete("a-1") is True
    await asyncio.sleep(0.1)

    assert ack.calls == []
    assert manager.delete("a-1") is False


@pytest.mark.asyncio
async def test_dismiss_acknowledges(make_alert):
    ack = AckRecorder()
    manager = AlertOverlayManager(acknowledge=ack)
    manager.upsert(make_alert("a-1", duration=0))

    assert manager.dismiss("a-1") is True
    await asyncio.sleep(0)

    assert ack.calls == ["a-1"]


@pytest.mark.asyncio
async def test_preview_skips_acknowledgement(make_alert):
    ack = AckRecorder()
    manager = AlertOverlayManager(acknowledge=ack, preview=True)
    manager.upsert(make_alert("a-1", duration=0.05))

    await asyncio.sleep(0.15)

    assert "a-1" not in manager
    assert ack.calls == []


@pytest.mark.asyncio
async def test_failed_acknowledgement_is_logged(make_alert, caplog):
    ack = AckRecorder(fail=True)
    manager = AlertOverlayManager(acknowledge=ack)
    manager.upsert(make_alert("a-1", duration=0))

    with caplog.at_level(logging.WARNING):
        manager.expire("a-1")
        await asyncio.sleep(0.01)

    assert ack.calls == ["a-1"]
    assert "Could not mark alert a-1 as expired" in caplog.text


@pytest.mark.asyncio
async def test_most_recent_alert_first(make_alert):
    manager = AlertOverlayManager()
    manager.load([make_alert("a-1", duration=0), make_alert("a-2", duration=0)])

    manager.upsert(make_alert("a-1", duration=0))

    assert [alert.id for alert in manager.active()] == ["a-1", "a-2"]
    manager.teardown()
    assert manager.active() == []
