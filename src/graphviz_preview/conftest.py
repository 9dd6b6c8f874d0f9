"""Shared fixtures: a virtual clock plus a timer scheduler driven by it."""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, Optional

import pytest


class _FakeTimerHandle:
    def __init__(self, due_ms: float, callback: Callable[[], None]) -> None:
        self.due_ms = float(due_ms)
        self.callback: Optional[Callable[[], None]] = callback

    @property
    def active(self) -> bool:
        return self.callback is not None

    def cancel(self) -> None:
        self.callback = None


class VirtualTime:
    """Deterministic time source and timer scheduler for scheduler tests.

    ``time_fn`` reports seconds like ``time.perf_counter``; ``advance`` moves
    the clock forward, firing due timers in deadline order with the clock set
    to each timer's deadline while it runs.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = float(start_ms)
        self._heap: list[tuple[float, int, _FakeTimerHandle]] = []
        self._seq = itertools.count()
        self.fired = 0

    def time_fn(self) -> float:
        return self.now_ms / 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _FakeTimerHandle:
        handle = _FakeTimerHandle(self.now_ms + max(0.0, float(delay_ms)), callback)
        heapq.heappush(self._heap, (handle.due_ms, next(self._seq), handle))
        return handle

    @property
    def active_timers(self) -> int:
        return sum(1 for _, _, handle in self._heap if handle.active)

    def advance(self, delta_ms: float) -> None:
        self.advance_to(self.now_ms + float(delta_ms))

    def advance_to(self, target_ms: float) -> None:
        while self._heap and self._heap[0][0] <= target_ms:
            due, _, handle = heapq.heappop(self._heap)
            callback = handle.callback
            if callback is None:
                continue
            handle.callback = None
            self.now_ms = max(self.now_ms, due)
            self.fired += 1
            callback()
        self.now_ms = max(self.now_ms, float(target_ms))


class RendererSpy:
    """Records sends as ``(time_ms, source)`` pairs."""

    def __init__(self, clock: VirtualTime) -> None:
        self._clock = clock
        self.sends: list[tuple[float, str]] = []

    def __call__(self, source: str) -> None:
        self.sends.append((self._clock.now_ms, source))

    @property
    def sources(self) -> list[str]:
        return [source for _, source in self.sends]


@pytest.fixture
def vtime() -> VirtualTime:
    return VirtualTime()


@pytest.fixture
def renderer(vtime: VirtualTime) -> RendererSpy:
    return RendererSpy(vtime)
