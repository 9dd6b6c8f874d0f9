"""Configuration dataclasses shared across graphviz-preview."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from graphviz_preview.utils.env import env_bool, env_int

logger = logging.getLogger(__name__)

ENV_PREFIX = "GRAPHVIZ_PREVIEW_"


@dataclass(frozen=True)
class SchedulerConfig:
    """Timing policy captured once per render session."""

    guard_interval_ms: int = 10
    debounce_interval_ms: int = 300
    render_interval_ms: int = 0
    lock_enabled: bool = True
    lock_safety_timeout_ms: int = 1500

    def __post_init__(self) -> None:
        for name in (
            "guard_interval_ms",
            "debounce_interval_ms",
            "render_interval_ms",
            "lock_safety_timeout_ms",
        ):
            value = getattr(self, name)
            if int(value) < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @property
    def safety_timer_enabled(self) -> bool:
        return self.lock_enabled and self.lock_safety_timeout_ms > 0


@dataclass(frozen=True)
class PreviewSettings:
    """User-facing preview settings, resolved into a ``SchedulerConfig``.

    ``render_lock_additional_timeout_ms`` is added on top of the page's
    transition time to form the lock safety timeout; a negative value turns
    the safety timer off while keeping the lock itself.
    """

    render_lock: bool = True
    render_lock_additional_timeout_ms: int = 1000
    render_interval_ms: int = 0
    debounce_interval_ms: int = 300
    guard_interval_ms: int = 10
    transition_delay_ms: int = 0
    transition_duration_ms: int = 500

    @property
    def lock_safety_timeout_ms(self) -> int:
        if not self.render_lock or self.render_lock_additional_timeout_ms < 0:
            return 0
        return (
            self.render_lock_additional_timeout_ms
            + max(0, self.transition_delay_ms)
            + max(0, self.transition_duration_ms)
        )

    def scheduler_config(self) -> SchedulerConfig:
        return SchedulerConfig(
            guard_interval_ms=max(0, self.guard_interval_ms),
            debounce_interval_ms=max(0, self.debounce_interval_ms),
            render_interval_ms=max(0, self.render_interval_ms),
            lock_enabled=self.render_lock,
            lock_safety_timeout_ms=self.lock_safety_timeout_ms,
        )

    def view_config(self) -> dict[str, Any]:
        """Payload for the page's ``setConfig`` message."""

        return {
            "transitionDelay": self.transition_delay_ms,
            "transitionDuration": self.transition_duration_ms,
        }


def load_preview_settings(env: Optional[Mapping[str, str]] = None) -> PreviewSettings:
    """Resolve ``GRAPHVIZ_PREVIEW_*`` variables into ``PreviewSettings``."""

    defaults = PreviewSettings()

    def _int(suffix: str, default: int) -> int:
        return env_int(ENV_PREFIX + suffix, default, env)

    settings = PreviewSettings(
        render_lock=env_bool(ENV_PREFIX + "RENDER_LOCK", defaults.render_lock, env),
        render_lock_additional_timeout_ms=_int(
            "RENDER_LOCK_ADDITIONAL_TIMEOUT_MS", defaults.render_lock_additional_timeout_ms
        ),
        render_interval_ms=_int("RENDER_INTERVAL_MS", defaults.render_interval_ms),
        debounce_interval_ms=_int("DEBOUNCE_INTERVAL_MS", defaults.debounce_interval_ms),
        guard_interval_ms=_int("GUARD_INTERVAL_MS", defaults.guard_interval_ms),
        transition_delay_ms=_int("TRANSITION_DELAY_MS", defaults.transition_delay_ms),
        transition_duration_ms=_int("TRANSITION_DURATION_MS", defaults.transition_duration_ms),
    )
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("preview settings resolved: %s", settings)
    return settings


__all__ = [
    "ENV_PREFIX",
    "PreviewSettings",
    "SchedulerConfig",
    "load_preview_settings",
]
