from __future__ import annotations

"""Debug/logging policy plumbing for graphviz-preview.

``GRAPHVIZ_PREVIEW_DEBUG`` accepts a bare switch (``1``/``true`` turns on
every area), a comma-separated list of areas (``lock,messages``) or a JSON
object such as ``{"enabled": true, "flags": ["requests"]}``.
"""

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEBUG_ENV = "GRAPHVIZ_PREVIEW_DEBUG"


@dataclass(frozen=True)
class LoggingToggles:
    log_requests: bool = False
    log_dispatch: bool = False
    log_lock: bool = False
    log_messages: bool = False

    @classmethod
    def from_areas(cls, areas: set[str]) -> "LoggingToggles":
        every = "all" in areas
        return cls(**{f.name: every or f.name[len("log_"):] in areas for f in fields(cls)})


@dataclass(frozen=True)
class DebugPolicy:
    enabled: bool = False
    logging: LoggingToggles = field(default_factory=LoggingToggles)


_SWITCH_ON = frozenset({"1", "true", "yes", "on"})
_SWITCH_OFF = frozenset({"", "0", "false", "no", "off"})


def _areas(raw: Any) -> set[str]:
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, (list, tuple, set)):
        return set()
    return {str(item).strip().lower() for item in raw if str(item).strip()}


def _parse_debug_value(raw: str) -> tuple[bool, set[str]]:
    text = raw.strip()
    switch = text.lower()
    if switch in _SWITCH_OFF:
        return False, set()
    if switch in _SWITCH_ON:
        return True, {"all"}
    if text[:1] in "[{":
        try:
            parsed = json.loads(text)
        except ValueError:
            logger.debug("%s is not valid JSON; reading it as an area list", DEBUG_ENV, exc_info=True)
        else:
            if isinstance(parsed, dict):
                enabled = parsed.get("enabled", True)
                if isinstance(enabled, str):
                    enabled = enabled.strip().lower() not in _SWITCH_OFF
                return bool(enabled), _areas(parsed.get("flags"))
            return True, _areas(parsed)
    return True, _areas(text)


def load_debug_policy(env: Optional[Mapping[str, str]] = None) -> DebugPolicy:
    source = os.environ if env is None else env
    raw = source.get(DEBUG_ENV)
    if raw is None:
        return DebugPolicy()
    enabled, areas = _parse_debug_value(raw)
    if not enabled:
        return DebugPolicy()
    return DebugPolicy(enabled=True, logging=LoggingToggles.from_areas(areas))


__all__ = [
    "DEBUG_ENV",
    "DebugPolicy",
    "LoggingToggles",
    "load_debug_policy",
]
