"""
Core utilities package for sheetplan.

This package provides shared configuration, the host model and the shared
resource primitive. The application context lives in ``core.context``.
"""

from .config import AppConfig, get_config, reload_config
from .host import AsyncioScheduler, Document, Host, ScriptElement, monotonic_ms
from .singleton import SharedResource

__all__ = [
    # Config
    "AppConfig",
    "get_config",
    "reload_config",
    # Host
    "AsyncioScheduler",
    "Document",
    "Host",
    "ScriptElement",
    "monotonic_ms",
    # Resources
    "SharedResource",
]
