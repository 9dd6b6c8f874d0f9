"""Map document identities to their render sessions."""

from __future__ import annotations

import logging
import time
from typing import Callable, Hashable, Iterator, Optional

from graphviz_preview.config.logging_policy import LoggingToggles
from graphviz_preview.config.models import SchedulerConfig
from graphviz_preview.scheduling.session import RenderSession
from graphviz_preview.scheduling.timers import TimeFn, TimerScheduler

logger = logging.getLogger(__name__)


class UnknownSessionError(KeyError):
    """No open session exists for the requested identity."""


class SessionRegistry:
    def __init__(
        self,
        config: SchedulerConfig,
        scheduler: TimerScheduler,
        *,
        time_fn: TimeFn = time.perf_counter,
        logging_toggles: Optional[LoggingToggles] = None,
    ) -> None:
        self._config = config
        self._scheduler = scheduler
        self._time_fn = time_fn
        self._toggles = logging_toggles
        self._sessions: dict[Hashable, RenderSession] = {}

    def open(self, identity: Hashable, send_to_renderer: Callable[[str], None]) -> RenderSession:
        """Return the open session for ``identity``, creating it if needed."""

        session = self._sessions.get(identity)
        if session is not None:
            return session
        session = RenderSession(
            identity,
            self._config,
            send_to_renderer=send_to_renderer,
            scheduler=self._scheduler,
            time_fn=self._time_fn,
            logging_toggles=self._toggles,
        )
        self._sessions[identity] = session
        logger.debug("session opened for %r", identity)
        return session

    def get(self, identity: Hashable) -> Optional[RenderSession]:
        return self._sessions.get(identity)

    def require(self, identity: Hashable) -> RenderSession:
        session = self._sessions.get(identity)
        if session is None:
            raise UnknownSessionError(identity)
        return session

    def close(self, identity: Hashable) -> bool:
        session = self._sessions.pop(identity, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        for identity in list(self._sessions):
            self.close(identity)

    def __contains__(self, identity: object) -> bool:
        return identity in self._sessions

    def __iter__(self) -> Iterator[RenderSession]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["SessionRegistry", "UnknownSessionError"]
