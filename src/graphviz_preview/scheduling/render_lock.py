"""Per-session render exclusivity with a timeout-based safety release."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from graphviz_preview.config.models import SchedulerConfig
from graphviz_preview.scheduling.completion import CompletionToken
from graphviz_preview.scheduling.timers import TimerScheduler, TimerSlot

logger = logging.getLogger(__name__)

REASON_ACK = "ack"
REASON_SAFETY_TIMEOUT = "safety-timeout"
REASON_SEND_FAILED = "send-failed"


class RenderLock:
    """At most one render in flight per session.

    With ``lock_enabled`` off the lock never holds and every acquire succeeds.
    The safety timer is armed only when the lock is enabled and the timeout is
    positive; otherwise a renderer that never acknowledges keeps the lock held
    until the session closes.

    Acknowledgements carry no render id. Each forced release leaves one
    acknowledgement owed by the abandoned render, and the next ``release()``
    absorbs it instead of freeing whatever render is in flight by then.
    """

    def __init__(
        self,
        config: SchedulerConfig,
        scheduler: TimerScheduler,
        *,
        on_forced_release: Optional[Callable[[], None]] = None,
        log_lock: bool = False,
    ) -> None:
        self._config = config
        self._safety = TimerSlot(scheduler, "render-lock safety")
        self._on_forced_release = on_forced_release
        self._log_lock = bool(log_lock)
        self._token: Optional[CompletionToken] = None
        self._serial = 0
        self._owed_acks = 0

    @property
    def enabled(self) -> bool:
        return self._config.lock_enabled

    @property
    def held(self) -> bool:
        return self._token is not None

    @property
    def owed_acks(self) -> int:
        return self._owed_acks

    @property
    def safety_armed(self) -> bool:
        return self._safety.armed

    @property
    def token(self) -> Optional[CompletionToken]:
        return self._token

    def try_acquire(self) -> bool:
        if not self._config.lock_enabled:
            return True
        if self._token is not None:
            return False
        self._serial += 1
        token = CompletionToken(self._serial, self._on_token_resolved)
        self._token = token
        if self._config.safety_timer_enabled:
            self._safety.arm(self._config.lock_safety_timeout_ms, self.force_release)
        if self._log_lock:
            logger.info(
                "render lock acquired serial=%d safety_ms=%d",
                token.serial,
                self._config.lock_safety_timeout_ms if self._config.safety_timer_enabled else 0,
            )
        return True

    def release(self) -> bool:
        """Release after the renderer acknowledged (success or failure)."""

        if self._owed_acks:
            self._owed_acks -= 1
            if self._log_lock:
                logger.info("late acknowledgement absorbed; %d still owed", self._owed_acks)
            return False
        token = self._token
        if token is None:
            return False
        return token.resolve(REASON_ACK)

    def abort(self) -> bool:
        """Release because the render never reached the renderer; nothing is owed."""

        token = self._token
        if token is None:
            return False
        return token.resolve(REASON_SEND_FAILED)

    def force_release(self) -> bool:
        """Release because the renderer never acknowledged in time."""

        token = self._token
        if token is None:
            return False
        if not token.resolve(REASON_SAFETY_TIMEOUT):
            return False
        self._owed_acks += 1
        logger.warning(
            "render lock released after %d ms without acknowledgement (serial=%d)",
            self._config.lock_safety_timeout_ms,
            token.serial,
        )
        if self._on_forced_release is not None:
            self._on_forced_release()
        return True

    def cancel(self) -> None:
        """Drop the lock without notifying anyone; used when the session closes."""

        self._owed_acks = 0
        self._safety.disarm()
        token, self._token = self._token, None
        if token is not None:
            token.abandon()

    def _on_token_resolved(self, token: CompletionToken) -> None:
        if self._token is not token:
            return
        self._safety.disarm()
        self._token = None
        if self._log_lock:
            logger.info("render lock released serial=%d reason=%s", token.serial, token.reason)


__all__ = ["REASON_ACK", "REASON_SAFETY_TIMEOUT", "REASON_SEND_FAILED", "RenderLock"]
