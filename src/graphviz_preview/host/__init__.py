"""Collaborator layer: page messages, file watching and the WebSocket host."""

from .messages import PreviewMessage, ProtocolError, parse_message
from .router import PreviewRouter

__all__ = ["PreviewMessage", "PreviewRouter", "ProtocolError", "parse_message"]
