"""
Launcher for the graphviz-preview WebSocket host.

Serves one or more DOT files; preview pages connect per document and receive
renders scheduled by the document's render session.
"""

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Optional, Sequence

from graphviz_preview.config.logging_policy import DEBUG_ENV, load_debug_policy
from graphviz_preview.config.models import ENV_PREFIX, load_preview_settings
from graphviz_preview.host.router import PreviewRouter
from graphviz_preview.host.server import PreviewServer
from graphviz_preview.scheduling.timers import AsyncioTimerScheduler

logger = logging.getLogger(__name__)

# CLI flag -> settings env suffix
_TIMING_FLAGS = {
    "guard_ms": "GUARD_INTERVAL_MS",
    "debounce_ms": "DEBOUNCE_INTERVAL_MS",
    "render_interval_ms": "RENDER_INTERVAL_MS",
    "lock_timeout_ms": "RENDER_LOCK_ADDITIONAL_TIMEOUT_MS",
}


async def launch_preview_server(
    files: Sequence[Path],
    host: str = "127.0.0.1",
    port: int = 8765,
    poll_ms: int = 250,
) -> None:
    """Serve ``files`` until cancelled; settings come from the environment."""

    settings = load_preview_settings()
    policy = load_debug_policy()
    router = PreviewRouter(
        settings,
        AsyncioTimerScheduler(asyncio.get_running_loop()),
        debug_policy=policy,
    )
    documents = {}
    for path in files:
        name = Path(path).name
        if name in documents:
            raise ValueError(f"duplicate document name {name!r}; file names must be unique")
        documents[name] = Path(path)
    server = PreviewServer(router, documents, host=host, port=port, poll_ms=poll_ms)
    logger.info("scheduler config: %s", settings.scheduler_config())
    await server.serve_forever()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphviz-preview",
        description="Live preview host for Graphviz DOT files",
    )
    parser.add_argument("files", nargs="+", type=Path, help="DOT files to serve")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8765, help="WebSocket port (default: 8765)")
    parser.add_argument(
        "--poll-ms",
        type=int,
        default=250,
        help="File change polling interval in milliseconds (default: 250)",
    )
    parser.add_argument("--guard-ms", type=int, default=None, help="Leading-edge guard interval")
    parser.add_argument("--debounce-ms", type=int, default=None, help="Debounce interval")
    parser.add_argument("--render-interval-ms", type=int, default=None, help="Minimum time between renders")
    parser.add_argument(
        "--lock-timeout-ms",
        type=int,
        default=None,
        help="Extra wait before a silent renderer releases the lock (negative disables)",
    )
    parser.add_argument("--no-render-lock", action="store_true", help="Do not wait for render acknowledgements")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Root log level (default: INFO)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable every scheduler debug log area")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] %(name)s - %(levelname)s - %(message)s",
    )
    # Keep websockets quiet unless the root level asks for debug output.
    if args.log_level != "DEBUG":
        logging.getLogger("websockets").setLevel(logging.INFO)

    # CLI wins over existing envs
    for attr, suffix in _TIMING_FLAGS.items():
        value = getattr(args, attr)
        if value is not None:
            os.environ[ENV_PREFIX + suffix] = str(int(value))
    if args.no_render_lock:
        os.environ[ENV_PREFIX + "RENDER_LOCK"] = "0"
    if args.debug:
        os.environ.setdefault(DEBUG_ENV, "1")

    missing = [str(path) for path in args.files if not path.is_file()]
    if missing:
        logger.error("not a file: %s", ", ".join(missing))
        return 2

    try:
        asyncio.run(launch_preview_server(args.files, host=args.host, port=args.port, poll_ms=args.poll_ms))
    except KeyboardInterrupt:
        logger.info("preview server stopped")
    except ValueError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
