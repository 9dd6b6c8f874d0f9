"""Render-request scheduling: when edited source reaches the renderer."""

from .coalescer import RequestCoalescer
from .completion import CompletionToken
from .registry import SessionRegistry, UnknownSessionError
from .render_lock import RenderLock
from .session import RenderSession, SessionState
from .timers import (
    AsyncioTimerScheduler,
    QtTimerScheduler,
    TimerHandle,
    TimerScheduler,
    TimerSlot,
)

__all__ = [
    "AsyncioTimerScheduler",
    "CompletionToken",
    "QtTimerScheduler",
    "RenderLock",
    "RenderSession",
    "RequestCoalescer",
    "SessionRegistry",
    "SessionState",
    "TimerHandle",
    "TimerScheduler",
    "TimerSlot",
    "UnknownSessionError",
]
