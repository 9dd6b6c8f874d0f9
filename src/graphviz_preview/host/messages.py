"""JSON messages exchanged between the preview host and the page."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Union

# host -> page
RENDER_DOT = "renderDot"
SET_CONFIG = "setConfig"

# page -> host
ON_RENDER_FINISHED = "onRenderFinished"
ON_PAGE_LOADED = "onPageLoaded"
ON_CLICK = "onClick"
ON_DBL_CLICK = "onDblClick"
ON_VISIBILITY_CHANGED = "onVisibilityChanged"


class ProtocolError(ValueError):
    """Inbound message could not be decoded."""


@dataclass(frozen=True)
class PreviewMessage:
    command: str
    value: Any = None

    def to_json(self) -> str:
        payload: dict[str, Any] = {"command": self.command}
        if self.value is not None:
            payload["value"] = self.value
        return json.dumps(payload, separators=(",", ":"))

    @property
    def render_error(self) -> Any:
        """Error carried by ``onRenderFinished``; ``None`` on success."""

        if isinstance(self.value, Mapping):
            return self.value.get("err")
        return None

    @property
    def visible(self) -> bool:
        """Visibility carried by ``onVisibilityChanged`` (``{"visible": bool}`` or a bare bool)."""

        value = self.value.get("visible", True) if isinstance(self.value, Mapping) else self.value
        return True if value is None else bool(value)


def render_dot(source: str) -> PreviewMessage:
    return PreviewMessage(RENDER_DOT, source)


def set_config(payload: Mapping[str, Any]) -> PreviewMessage:
    return PreviewMessage(SET_CONFIG, dict(payload))


def parse_message(raw: Union[str, bytes, Mapping[str, Any]]) -> PreviewMessage:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ProtocolError(f"invalid JSON message: {exc}") from exc
    else:
        data = raw
    if not isinstance(data, Mapping):
        raise ProtocolError(f"message must be an object, got {type(data).__name__}")
    command = data.get("command")
    if not isinstance(command, str) or not command:
        raise ProtocolError("message missing 'command'")
    return PreviewMessage(command, data.get("value"))


__all__ = [
    "ON_CLICK",
    "ON_DBL_CLICK",
    "ON_PAGE_LOADED",
    "ON_RENDER_FINISHED",
    "ON_VISIBILITY_CHANGED",
    "PreviewMessage",
    "ProtocolError",
    "RENDER_DOT",
    "SET_CONFIG",
    "parse_message",
    "render_dot",
    "set_config",
]
