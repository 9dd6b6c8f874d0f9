"""Poll DOT files on disk and turn edits into render requests."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_POLL_MS = 250


class FileWatcher:
    """Report content of ``path`` whenever its (mtime, size) signature moves."""

    def __init__(
        self,
        path: Path,
        on_change: Callable[[str], None],
        *,
        poll_ms: int = DEFAULT_POLL_MS,
        encoding: str = "utf-8",
    ) -> None:
        self.path = Path(path)
        self._on_change = on_change
        self._poll_s = max(10, int(poll_ms)) / 1000.0
        self._encoding = encoding
        self._signature: Optional[tuple[int, int]] = None
        self._task: Optional[asyncio.Task[None]] = None

    def _stat_signature(self) -> Optional[tuple[int, int]]:
        try:
            stat = self.path.stat()
        except OSError:
            # Editors may briefly remove the file while saving.
            return None
        return (int(stat.st_mtime_ns), int(stat.st_size))

    def prime(self) -> None:
        """Record the current signature as the baseline."""

        self._signature = self._stat_signature()

    def check(self) -> bool:
        signature = self._stat_signature()
        if signature is None or signature == self._signature:
            return False
        # Baseline first so a failed read does not repeat every tick.
        self._signature = signature
        try:
            text = self.path.read_text(encoding=self._encoding)
        except OSError:
            logger.warning("could not read %s after change", self.path, exc_info=True)
            return False
        logger.debug("change detected in %s (%d chars)", self.path, len(text))
        self._on_change(text)
        return True

    async def run(self) -> None:
        if self._signature is None:
            self.prime()
        while True:
            await asyncio.sleep(self._poll_s)
            self.check()

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


__all__ = ["DEFAULT_POLL_MS", "FileWatcher"]
