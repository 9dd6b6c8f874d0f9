"""Route page messages and document notifications to render sessions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Hashable, Optional

from graphviz_preview.config.logging_policy import DebugPolicy
from graphviz_preview.config.models import PreviewSettings
from graphviz_preview.host import messages
from graphviz_preview.host.messages import PreviewMessage
from graphviz_preview.scheduling.registry import SessionRegistry
from graphviz_preview.scheduling.session import RenderSession
from graphviz_preview.scheduling.timers import TimeFn, TimerScheduler

logger = logging.getLogger(__name__)

SendMessage = Callable[[PreviewMessage], None]
MessageHandler = Callable[[PreviewMessage], None]


@dataclass
class _Preview:
    send_message: SendMessage
    on_message: Optional[MessageHandler] = None
    visible: bool = True


class PreviewRouter:
    """Glue between one host (editor, file watcher, socket server) and sessions.

    While a preview is hidden its session dispatches nothing: armed timers are
    dropped and change/save notifications are staged until the preview becomes
    visible again. Pages report visibility with ``onVisibilityChanged``;
    embedding hosts that own the view can call ``set_visible`` directly.
    """

    def __init__(
        self,
        settings: PreviewSettings,
        scheduler: TimerScheduler,
        *,
        time_fn: TimeFn = time.perf_counter,
        debug_policy: Optional[DebugPolicy] = None,
    ) -> None:
        policy = debug_policy or DebugPolicy()
        self._settings = settings
        self._log_messages = policy.logging.log_messages
        self._registry = SessionRegistry(
            settings.scheduler_config(),
            scheduler,
            time_fn=time_fn,
            logging_toggles=policy.logging,
        )
        self._previews: dict[Hashable, _Preview] = {}

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    def session(self, identity: Hashable) -> Optional[RenderSession]:
        return self._registry.get(identity)

    # -------------------------------------------------------------- lifecycle
    def open_preview(
        self,
        identity: Hashable,
        send_message: SendMessage,
        *,
        initial_source: Optional[str] = None,
        on_message: Optional[MessageHandler] = None,
    ) -> RenderSession:
        preview = self._previews.get(identity)
        if preview is None:
            preview = _Preview(send_message=send_message, on_message=on_message)
            self._previews[identity] = preview
        else:
            preview.send_message = send_message
            if on_message is not None:
                preview.on_message = on_message
        session = self._registry.open(identity, lambda source: self._post(identity, messages.render_dot(source)))
        if initial_source:
            # Rendered once the page reports it has loaded.
            session.stage_source(initial_source)
        return session

    def close_preview(self, identity: Hashable) -> bool:
        self._previews.pop(identity, None)
        return self._registry.close(identity)

    def close_all(self) -> None:
        self._previews.clear()
        self._registry.close_all()

    # ---------------------------------------------------------- notifications
    def request_render(self, identity: Hashable, source: str) -> bool:
        session = self._registry.get(identity)
        preview = self._previews.get(identity)
        if session is None or preview is None:
            return False
        session.request_render(source)
        return True

    def set_visible(self, identity: Hashable, visible: bool) -> None:
        """Record a visibility change; hidden to visible flushes the staged source."""

        preview = self._previews.get(identity)
        if preview is None:
            return
        was_visible, preview.visible = preview.visible, bool(visible)
        session = self._registry.get(identity)
        if session is None or preview.visible == was_visible:
            return
        if preview.visible:
            session.on_view_became_visible()
        else:
            session.on_view_hidden()

    def handle_message(self, identity: Hashable, message: PreviewMessage) -> None:
        session = self._registry.get(identity)
        preview = self._previews.get(identity)
        if session is None or preview is None:
            logger.debug("message %s for unknown preview %r dropped", message.command, identity)
            return
        if self._log_messages:
            logger.info("page -> host %s for %r", message.command, identity)

        if message.command == messages.ON_RENDER_FINISHED:
            session.on_render_acknowledged(message.render_error)
        elif message.command == messages.ON_PAGE_LOADED:
            self._post(identity, messages.set_config(self._settings.view_config()))
            preview.visible = True
            session.on_view_became_visible()
        elif message.command == messages.ON_VISIBILITY_CHANGED:
            self.set_visible(identity, message.visible)
        elif preview.on_message is not None:
            preview.on_message(message)
        else:
            logger.warning("Unexpected command %r from preview %r", message.command, identity)

    def _post(self, identity: Hashable, message: PreviewMessage) -> None:
        preview = self._previews.get(identity)
        if preview is None:
            logger.debug("no preview for %r; dropping %s", identity, message.command)
            return
        if self._log_messages:
            logger.info("host -> page %s for %r", message.command, identity)
        preview.send_message(message)


__all__ = ["PreviewRouter"]
