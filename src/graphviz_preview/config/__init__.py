"""Shared configuration dataclasses for graphviz-preview."""

from .logging_policy import DebugPolicy, LoggingToggles, load_debug_policy
from .models import PreviewSettings, SchedulerConfig, load_preview_settings

__all__ = [
    "DebugPolicy",
    "LoggingToggles",
    "PreviewSettings",
    "SchedulerConfig",
    "load_debug_policy",
    "load_preview_settings",
]
