"""Single-assignment completion token for in-flight renders."""

from __future__ import annotations

from typing import Callable, Optional


class CompletionToken:
    """Resolved at most once; later attempts report ``False`` and do nothing.

    A render has two completion sources racing each other: the renderer's
    acknowledgement and the lock safety timer. Both resolve the same token so
    the lock is released exactly once per dispatch.
    """

    __slots__ = ("_on_resolve", "_reason", "serial")

    def __init__(self, serial: int, on_resolve: Callable[["CompletionToken"], None]) -> None:
        self.serial = int(serial)
        self._on_resolve: Optional[Callable[[CompletionToken], None]] = on_resolve
        self._reason: Optional[str] = None

    @property
    def done(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def resolve(self, reason: str) -> bool:
        if self._reason is not None:
            return False
        self._reason = reason
        on_resolve, self._on_resolve = self._on_resolve, None
        if on_resolve is not None:
            on_resolve(self)
        return True

    def abandon(self) -> None:
        """Mark done without running the resolve callback."""

        if self._reason is None:
            self._reason = "abandoned"
        self._on_resolve = None

    def __repr__(self) -> str:
        return f"CompletionToken(serial={self.serial}, reason={self._reason!r})"


__all__ = ["CompletionToken"]
