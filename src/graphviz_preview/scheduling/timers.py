"""Timer backends for the render scheduler.

The scheduler never blocks; every delay is a single-shot callback scheduled
on the event loop that owns the preview (a Qt GUI thread or an asyncio loop).
Backends hand out ``TimerHandle`` objects and ``TimerSlot`` guarantees that a
given owner never has more than one of them armed.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from qtpy import QtCore

logger = logging.getLogger(__name__)

TimeFn = Callable[[], float]


def monotonic_ms(time_fn: TimeFn = time.perf_counter) -> float:
    return float(time_fn()) * 1000.0


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle: ...


class _QtTimerHandle:
    def __init__(self, timer: QtCore.QTimer) -> None:
        self._timer: Optional[QtCore.QTimer] = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        timer = self._timer
        if timer is None:
            return
        self._timer = None
        timer.stop()
        timer.deleteLater()

    def _on_timeout(self, callback: Callable[[], None]) -> None:
        if self._timer is None:
            return
        self.cancel()
        callback()


class QtTimerScheduler:
    """Single-shot ``QTimer`` backend; callbacks run on the creating thread.

    Timers are parented so a cancelled timer survives until ``deleteLater``
    runs, even when it is cancelled from inside its own timeout.
    """

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        self._parent = parent if parent is not None else QtCore.QObject()

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        timer = QtCore.QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setTimerType(QtCore.Qt.PreciseTimer)  # type: ignore[attr-defined]
        handle = _QtTimerHandle(timer)
        timer.timeout.connect(lambda: handle._on_timeout(callback))  # noqa: SLF001
        timer.start(max(0, int(round(delay_ms))))
        return handle


class _AsyncioTimerHandle:
    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def cancel(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        handle.cancel()

    def _fire(self, callback: Callable[[], None]) -> None:
        if self._handle is None:
            return
        self._handle = None
        callback()


class AsyncioTimerScheduler:
    """``loop.call_later`` backend; bind it to the loop that owns the preview."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _AsyncioTimerHandle()
        handle._handle = self.loop.call_later(  # noqa: SLF001
            max(0.0, float(delay_ms)) / 1000.0,
            handle._fire,  # noqa: SLF001
            callback,
        )
        return handle


class TimerSlot:
    """Owns at most one armed timer; arming replaces whatever was armed."""

    def __init__(self, scheduler: TimerScheduler, name: str) -> None:
        self._scheduler = scheduler
        self._name = name
        self._handle: Optional[TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None and self._handle.active

    def arm(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.disarm()

        def _fire() -> None:
            if self._handle is not handle:
                return
            self._handle = None
            callback()

        handle = self._scheduler.call_later(delay_ms, _fire)
        self._handle = handle
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s timer armed delay_ms=%.1f", self._name, delay_ms)

    def disarm(self) -> bool:
        handle = self._handle
        if handle is None:
            return False
        self._handle = None
        handle.cancel()
        return True


__all__ = [
    "AsyncioTimerScheduler",
    "QtTimerScheduler",
    "TimeFn",
    "TimerHandle",
    "TimerScheduler",
    "TimerSlot",
    "monotonic_ms",
]
