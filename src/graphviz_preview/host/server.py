"""WebSocket host that feeds DOT documents to preview pages.

Each page connects to ``ws://<host>:<port>/preview/<name>`` where ``name``
is one of the served documents. The page renders ``renderDot`` payloads and
answers with ``onRenderFinished``; the scheduling in between is owned by the
document's render session.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from graphviz_preview.host.messages import PreviewMessage, ProtocolError, parse_message
from graphviz_preview.host.router import PreviewRouter
from graphviz_preview.host.watcher import DEFAULT_POLL_MS, FileWatcher

logger = logging.getLogger(__name__)

PATH_PREFIX = "/preview/"
_CLOSE_POLICY_VIOLATION = 1008


async def safe_send(ws: Any, data: Any) -> bool:
    """Send ``data`` on ``ws``; on failure close the socket and return False."""

    try:
        await ws.send(data)
        return True
    except ConnectionClosed:
        logger.debug("preview socket closed before send")
        return False
    except Exception:
        logger.debug("preview socket send failed", exc_info=True)
        try:
            await ws.close()
        except Exception:
            logger.debug("preview socket close failed after send failure", exc_info=True)
        return False


def document_name_from_path(path: str) -> Optional[str]:
    path = path.split("?", 1)[0]
    if not path.startswith(PATH_PREFIX):
        return None
    name = path[len(PATH_PREFIX):].strip("/")
    return name or None


class PreviewServer:
    def __init__(
        self,
        router: PreviewRouter,
        documents: Mapping[str, Path],
        *,
        host: str = "127.0.0.1",
        port: int = 8765,
        poll_ms: int = DEFAULT_POLL_MS,
    ) -> None:
        self._router = router
        self._documents = {name: Path(path) for name, path in documents.items()}
        self.host = host
        self.port = int(port)
        self._watchers = {
            name: FileWatcher(path, lambda text, name=name: self._router.request_render(name, text), poll_ms=poll_ms)
            for name, path in self._documents.items()
        }
        self._connections: dict[str, ServerConnection] = {}
        self._server: Optional[Server] = None

    @property
    def documents(self) -> dict[str, Path]:
        return dict(self._documents)

    async def start(self) -> Server:
        for watcher in self._watchers.values():
            watcher.prime()
            watcher.start()
        self._server = await serve(self._handle_client, self.host, self.port)
        logger.info(
            "preview server listening on ws://%s:%d%s<name> for %s",
            self.host,
            self.port,
            PATH_PREFIX,
            ", ".join(sorted(self._documents)) or "no documents",
        )
        return self._server

    async def serve_forever(self) -> None:
        server = await self.start()
        try:
            await server.serve_forever()
        finally:
            await self.stop()

    async def stop(self) -> None:
        for watcher in self._watchers.values():
            await watcher.stop()
        self._router.close_all()
        server, self._server = self._server, None
        if server is not None:
            server.close()
            await server.wait_closed()

    async def _handle_client(self, ws: ServerConnection) -> None:
        name = document_name_from_path(ws.request.path if ws.request is not None else "")
        if name is None or name not in self._documents:
            logger.warning("preview requested for unknown document path %r", ws.request and ws.request.path)
            await ws.close(_CLOSE_POLICY_VIOLATION, "unknown document")
            return

        previous = self._connections.get(name)
        self._connections[name] = ws
        if previous is not None:
            logger.info("preview %r reconnected; replacing previous page", name)
            self._router.close_preview(name)
            await previous.close()

        outbox: asyncio.Queue[PreviewMessage] = asyncio.Queue()
        writer = asyncio.get_running_loop().create_task(self._drain_outbox(ws, outbox))
        try:
            initial = self._documents[name].read_text(encoding="utf-8")
        except OSError:
            logger.warning("could not read %s", self._documents[name], exc_info=True)
            initial = None
        self._router.open_preview(name, outbox.put_nowait, initial_source=initial)
        logger.info("preview page connected for %r from %s", name, ws.remote_address)

        try:
            async for raw in ws:
                try:
                    message = parse_message(raw)
                except ProtocolError as exc:
                    logger.warning("bad message from preview %r: %s", name, exc)
                    continue
                self._router.handle_message(name, message)
        except ConnectionClosed:
            pass
        finally:
            logger.info("preview page for %r disconnected", name)
            if self._connections.get(name) is ws:
                del self._connections[name]
                self._router.close_preview(name)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass

    async def _drain_outbox(self, ws: ServerConnection, outbox: "asyncio.Queue[PreviewMessage]") -> None:
        while True:
            message = await outbox.get()
            if not await safe_send(ws, message.to_json()):
                return


__all__ = ["PATH_PREFIX", "PreviewServer", "document_name_from_path", "safe_send"]
