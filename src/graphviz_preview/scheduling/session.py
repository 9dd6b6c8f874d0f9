"""Render session: one per open document preview."""

from __future__ import annotations

import enum
import logging
import time
from typing import Any, Callable, Hashable, Optional

from graphviz_preview.config.logging_policy import LoggingToggles
from graphviz_preview.config.models import SchedulerConfig
from graphviz_preview.scheduling.coalescer import RequestCoalescer
from graphviz_preview.scheduling.render_lock import RenderLock
from graphviz_preview.scheduling.timers import TimeFn, TimerScheduler

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RENDERING = "rendering"
    CLOSED = "closed"


class RenderSession:
    """Compose the render lock and request coalescer for a single document.

    All methods must be called on the thread that owns ``scheduler``. None of
    them block; delays are expressed as timer callbacks only.
    """

    def __init__(
        self,
        identity: Hashable,
        config: SchedulerConfig,
        *,
        send_to_renderer: Callable[[str], None],
        scheduler: TimerScheduler,
        time_fn: TimeFn = time.perf_counter,
        logging_toggles: Optional[LoggingToggles] = None,
    ) -> None:
        toggles = logging_toggles or LoggingToggles()
        self.identity = identity
        self.config = config
        self._send_to_renderer = send_to_renderer
        self._log_dispatch = toggles.log_dispatch
        self._closed = False
        self._hidden = False
        self._renders = 0
        self._lock = RenderLock(
            config,
            scheduler,
            on_forced_release=self._flush,
            log_lock=toggles.log_lock,
        )
        self._coalescer = RequestCoalescer(
            config,
            scheduler,
            acquire=self._lock.try_acquire,
            send=self._transmit,
            time_fn=time_fn,
            log_requests=toggles.log_requests,
        )
        if config.lock_enabled and not config.safety_timer_enabled:
            logger.warning(
                "render lock enabled without a safety timeout for %r; "
                "a renderer that never acknowledges will stall this preview",
                identity,
            )

    # ------------------------------------------------------------------ state
    @property
    def state(self) -> SessionState:
        if self._closed:
            return SessionState.CLOSED
        if self._lock.held:
            return SessionState.RENDERING
        if self._coalescer.timer_armed or self._coalescer.has_pending:
            return SessionState.SCHEDULED
        return SessionState.IDLE

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def visible(self) -> bool:
        return not self._hidden

    @property
    def pending_source(self) -> Optional[str]:
        return self._coalescer.pending_source

    @property
    def lock(self) -> RenderLock:
        return self._lock

    @property
    def render_count(self) -> int:
        return self._renders

    # ------------------------------------------------------------- public API
    def request_render(self, source: str) -> None:
        """Called on document change/save with the latest source."""

        if self._closed:
            logger.debug("request_render ignored; session %r closed", self.identity)
            return
        if self._hidden:
            self._coalescer.stage(source)
            return
        self._coalescer.request_render(source)

    def stage_source(self, source: str) -> None:
        """Hold ``source`` until the next flush (page load, visibility, ack)."""

        if self._closed:
            return
        self._coalescer.stage(source)

    def on_render_acknowledged(self, error: Any = None) -> None:
        """Called when the renderer reports completion, successful or not."""

        if self._closed:
            logger.debug("acknowledgement ignored; session %r closed", self.identity)
            return
        if error:
            logger.info("render failed for %r: %s", self.identity, error)
        self._lock.release()
        self._flush()

    def on_view_became_visible(self) -> None:
        """Re-entry point for content held back while the view was hidden."""

        if self._closed:
            return
        self._hidden = False
        self._flush()

    def on_view_hidden(self) -> None:
        """Stop dispatching until ``on_view_became_visible``; edits are staged meanwhile."""

        if self._closed or self._hidden:
            return
        self._hidden = True
        self._coalescer.suspend()

    def close(self) -> None:
        """Cancel every timer and drop pending content; idempotent."""

        if self._closed:
            return
        self._closed = True
        self._coalescer.cancel()
        self._lock.cancel()
        logger.debug("session %r closed after %d renders", self.identity, self._renders)

    # -------------------------------------------------------------- internals
    def _flush(self) -> None:
        if self._closed or self._hidden:
            return
        self._coalescer.dispatch()

    def _transmit(self, source: str) -> None:
        self._renders += 1
        if self._log_dispatch:
            logger.info(
                "render #%d dispatched for %r (%d chars)",
                self._renders,
                self.identity,
                len(source),
            )
        try:
            self._send_to_renderer(source)
        except Exception:
            logger.exception("send_to_renderer failed for %r; releasing render lock", self.identity)
            self._lock.abort()

    def __repr__(self) -> str:
        return f"RenderSession(identity={self.identity!r}, state={self.state.value})"


__all__ = ["RenderSession", "SessionState"]
