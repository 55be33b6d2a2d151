"""
Host environment for the client library.

The library is loaded the way a page loads a script: a script element is
appended to the document, the host executes it some time later, and the
script publishes a global. This module models that host so the bootstrap can
be driven by a real event loop or by a deterministic test scheduler.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from ..utils.constants import DEFAULT_POLL_INTERVAL_MS

logger = logging.getLogger(__name__)

ScriptLoader = Callable[[], None]


def monotonic_ms() -> float:
    """Milliseconds from a monotonic clock."""
    return time.monotonic() * 1000.0


@dataclass
class ScriptElement:
    """A script tag in the host document."""

    src: str
    type: str = "text/javascript"
    async_: bool = True


class Document:
    """
    Minimal document holding the injected script elements.

    Loaders registered per script URL play the part of the host fetching and
    executing the script once its element is attached.
    """

    def __init__(self) -> None:
        self.head: List[ScriptElement] = []
        self._loaders: Dict[str, ScriptLoader] = {}

    def register_loader(self, src: str, loader: ScriptLoader) -> None:
        self._loaders[src] = loader

    def query_script(self, src: str) -> Optional[ScriptElement]:
        """Return the first script element referencing ``src``, if any."""
        for element in self.head:
            if element.src == src:
                return element
        return None

    def append_script(self, element: ScriptElement) -> None:
        self.head.append(element)

        loader = self._loaders.get(element.src)
        if loader is None:
            logger.debug("No loader registered for %s", element.src)
            return
        asyncio.get_running_loop().call_soon(loader)


class Scheduler(Protocol):
    """Schedules the next readiness check without blocking the loop."""

    def schedule_next_check(self, callback: Callable[[], None]) -> None:
        ...


class AsyncioScheduler:
    """Runs callbacks on the event loop at roughly animation-frame cadence."""

    def __init__(self, interval_ms: float = DEFAULT_POLL_INTERVAL_MS) -> None:
        self.interval_ms = interval_ms

    def schedule_next_check(self, callback: Callable[[], None]) -> None:
        asyncio.get_running_loop().call_later(self.interval_ms / 1000.0, callback)


@dataclass
class Host:
    """Everything the bootstrap needs from its surroundings."""

    document: Document = field(default_factory=Document)
    globals: Dict[str, Any] = field(default_factory=dict)
    scheduler: Scheduler = field(default_factory=AsyncioScheduler)
    clock: Callable[[], float] = monotonic_ms

    @classmethod
    def create_default(cls, poll_interval_ms: float = DEFAULT_POLL_INTERVAL_MS) -> "Host":
        return cls(scheduler=AsyncioScheduler(poll_interval_ms))
