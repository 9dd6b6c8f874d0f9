"""
graphviz-preview: live preview host for Graphviz DOT documents.

The interesting part is ``graphviz_preview.scheduling``, which decides when
edited source is handed to the (asynchronous, possibly silent) renderer.
Top-level names resolve lazily, on first attribute access.
"""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"

_EXPORTS = {
    "PreviewRouter": "graphviz_preview.host.router",
    "RenderSession": "graphviz_preview.scheduling.session",
    "SchedulerConfig": "graphviz_preview.config.models",
    "SessionRegistry": "graphviz_preview.scheduling.registry",
}

__all__ = [*sorted(_EXPORTS), "__version__"]


def __getattr__(name: str) -> Any:
    module_path = _EXPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(module_path), name)
    globals()[name] = value
    return value
