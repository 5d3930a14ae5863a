"""Browser collaborator, lifecycle and debug capture."""

from .dom_snapshot import DomSnapshotter
from .manager import BrowserManager
from .recorder import InteractionRecorder
from .session import BrowserSession, PlaywrightSession, timestamp_slug

__all__ = [
    "BrowserManager",
    "BrowserSession",
    "DomSnapshotter",
    "InteractionRecorder",
    "PlaywrightSession",
    "timestamp_slug",
]
