"""Tests for the timer backends and the single-timer slot."""

from __future__ import annotations

import asyncio
import time

import pytest

from graphviz_preview.scheduling.timers import (
    AsyncioTimerScheduler,
    QtTimerScheduler,
    TimerSlot,
    monotonic_ms,
)


def test_monotonic_ms_scales_seconds() -> None:
    assert monotonic_ms(lambda: 1.5) == pytest.approx(1500.0)


def test_slot_rearm_replaces_previous(vtime) -> None:
    calls: list[str] = []
    slot = TimerSlot(vtime, "test")

    slot.arm(100, lambda: calls.append("first"))
    slot.arm(50, lambda: calls.append("second"))
    assert vtime.active_timers == 1

    vtime.advance(200)
    assert calls == ["second"]
    assert not slot.armed


def test_slot_disarm(vtime) -> None:
    calls: list[str] = []
    slot = TimerSlot(vtime, "test")
    slot.arm(100, lambda: calls.append("x"))

    assert slot.disarm() is True
    assert slot.disarm() is False
    vtime.advance(200)
    assert calls == []


def test_slot_can_rearm_from_its_own_callback(vtime) -> None:
    calls: list[float] = []
    slot = TimerSlot(vtime, "test")

    def tick() -> None:
        calls.append(vtime.now_ms)
        if len(calls) < 3:
            slot.arm(10, tick)

    slot.arm(10, tick)
    vtime.advance(100)
    assert calls == [10.0, 20.0, 30.0]


def test_asyncio_scheduler_fires_and_cancels() -> None:
    async def scenario() -> list[str]:
        calls: list[str] = []
        scheduler = AsyncioTimerScheduler()
        fired = scheduler.call_later(5, lambda: calls.append("fired"))
        cancelled = scheduler.call_later(5, lambda: calls.append("cancelled"))
        assert fired.active and cancelled.active
        cancelled.cancel()
        assert not cancelled.active
        await asyncio.sleep(0.05)
        assert not fired.active
        return calls

    assert asyncio.run(scenario()) == ["fired"]


def test_qt_scheduler_fires_once(qtbot) -> None:
    calls: list[float] = []
    scheduler = QtTimerScheduler()
    start = time.perf_counter()

    handle = scheduler.call_later(20, lambda: calls.append(time.perf_counter() - start))
    assert handle.active

    qtbot.waitUntil(lambda: len(calls) == 1, timeout=2000)
    assert not handle.active
    qtbot.wait(50)
    assert len(calls) == 1


def test_qt_scheduler_cancel(qtbot) -> None:
    calls: list[str] = []
    scheduler = QtTimerScheduler()

    handle = scheduler.call_later(10, lambda: calls.append("x"))
    handle.cancel()
    handle.cancel()

    qtbot.wait(60)
    assert calls == []
    assert not handle.active


def test_session_on_qt_event_loop(qtbot) -> None:
    from graphviz_preview.config.models import SchedulerConfig
    from graphviz_preview.scheduling.session import RenderSession

    sent: list[str] = []
    session = RenderSession(
        "qt.dot",
        SchedulerConfig(guard_interval_ms=0, debounce_interval_ms=30, lock_safety_timeout_ms=100),
        send_to_renderer=sent.append,
        scheduler=QtTimerScheduler(),
    )
    session.request_render("digraph { a }")
    session.request_render("digraph { a -> b }")

    qtbot.waitUntil(lambda: sent == ["digraph { a -> b }"], timeout=2000)
    # No ack: the safety timer frees the lock for the next edit.
    session.request_render("digraph { c }")
    qtbot.waitUntil(lambda: len(sent) == 2, timeout=2000)
    assert sent[-1] == "digraph { c }"
    session.close()
