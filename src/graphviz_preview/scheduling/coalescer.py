"""Coalesce bursts of render requests into correctly spaced dispatches."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from graphviz_preview.config.models import SchedulerConfig
from graphviz_preview.scheduling.timers import TimeFn, TimerScheduler, TimerSlot, monotonic_ms

logger = logging.getLogger(__name__)


class RequestCoalescer:
    """Keep only the latest requested source and decide when to hand it off.

    Three delays are computed per request and the largest wins:

    * guard: a request opening a new burst (quiet for longer than the guard
      interval) waits ``guard_interval_ms`` so near-duplicate change/save
      notifications collapse into one render;
    * debounce: ``debounce_interval_ms``, restarted on every request;
    * interval floor: whatever remains of ``render_interval_ms`` since the
      last dispatch.

    A later request never shortens a wait that is already armed; the debounce
    can only push it further out. A purely interval-driven wait is left alone.

    ``acquire`` gates each dispatch (the render lock); when it refuses, the
    pending source stays put until the next ``dispatch()`` call.
    """

    def __init__(
        self,
        config: SchedulerConfig,
        scheduler: TimerScheduler,
        *,
        acquire: Callable[[], bool],
        send: Callable[[str], None],
        time_fn: TimeFn = time.perf_counter,
        log_requests: bool = False,
    ) -> None:
        self._config = config
        self._timer = TimerSlot(scheduler, "render request")
        self._acquire = acquire
        self._send = send
        self._time_fn = time_fn
        self._log_requests = bool(log_requests)
        now = self._now()
        self._last_request_at = now
        self._last_render_at = now
        self._pending: Optional[str] = None
        self._due_at = now

    @property
    def pending_source(self) -> Optional[str]:
        return self._pending

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    @property
    def timer_armed(self) -> bool:
        return self._timer.armed

    @property
    def last_request_at(self) -> float:
        return self._last_request_at

    @property
    def last_render_at(self) -> float:
        return self._last_render_at

    def _now(self) -> float:
        return monotonic_ms(self._time_fn)

    def compute_delay(self, since_last_request: float, since_last_render: float) -> float:
        cfg = self._config
        guard = cfg.guard_interval_ms if since_last_request > cfg.guard_interval_ms else 0
        debounce = cfg.debounce_interval_ms
        interval = cfg.render_interval_ms - since_last_render
        return max(guard, debounce, interval)

    def request_render(self, source: str) -> float:
        """Record ``source`` as the latest content and schedule or dispatch it.

        Returns the delay in milliseconds that was applied (``0`` when the
        source was dispatched inline).
        """

        now = self._now()
        since_last_request = now - self._last_request_at
        since_last_render = now - self._last_render_at
        self._last_request_at = now
        self._pending = source

        delay = self.compute_delay(since_last_request, since_last_render)
        if delay <= 0 and self._timer.armed:
            # Later request inside a guarded burst: ride the armed timer.
            return max(0.0, self._due_at - now)
        if delay > 0:
            if self._config.debounce_interval_ms > 0 or not self._timer.armed:
                if self._timer.armed:
                    # Re-arming may extend the wait but never cut a guard short.
                    delay = max(delay, self._due_at - now)
                self._timer.arm(delay, self.dispatch)
                self._due_at = now + delay
            else:
                # Armed timer left alone: report the wait it actually imposes.
                delay = max(0.0, self._due_at - now)
            if self._log_requests:
                logger.info(
                    "render request scheduled wait_ms=%.1f since_request_ms=%.1f since_render_ms=%.1f",
                    delay,
                    since_last_request,
                    since_last_render,
                )
            return delay

        if self._log_requests:
            logger.info("render request dispatching inline")
        self.dispatch()
        return 0.0

    def stage(self, source: str) -> None:
        """Replace the pending source and drop any armed dispatch.

        The source waits for an explicit ``dispatch()``.
        """

        self._timer.disarm()
        self._pending = source

    def suspend(self) -> None:
        """Disarm the dispatch timer but keep the pending source."""

        self._timer.disarm()

    def dispatch(self) -> bool:
        """Hand the pending source to the renderer if the gate allows it."""

        self._timer.disarm()
        source = self._pending
        if not source:
            logger.debug("dispatch: no pending source")
            return False
        if not self._acquire():
            logger.debug("dispatch: render in flight; keeping pending source")
            return False
        self._pending = None
        self._last_render_at = self._now()
        self._send(source)
        return True

    def cancel(self) -> None:
        self._timer.disarm()
        self._pending = None


__all__ = ["RequestCoalescer"]
