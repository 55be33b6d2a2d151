"""
Application context for sheetplan.

An AppContext owns the single bootstrap of the Google API for its lifetime
and the shared resources built on it. Consumers receive the context instead
of reaching for module globals, so tests can run each case against a fresh
one. A failed bootstrap stays failed for the context that ran it; creating a
new context is how a caller tries again.
"""

import asyncio
import contextvars
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from ..api.bootstrap import ResourceBootstrap
from ..auth.session import GoogleAuth
from ..client.sheets import GoogleSheetsAPI
from ..gapi import install_google_api_loader
from .config import AppConfig, get_config
from .host import Host
from .singleton import SharedResource

logger = logging.getLogger(__name__)


class AppContext:
    """Owns the Google API, auth and Sheets resources for one application."""

    def __init__(self, config: Optional[AppConfig] = None, host: Optional[Host] = None) -> None:
        self.config = config or get_config()
        if host is None:
            host = Host.create_default(self.config.poll_interval_ms)
            install_google_api_loader(
                host,
                self.config.api_url,
                self.config.client_secret,
                sign_in_timeout_s=self.config.sign_in_timeout_s,
            )
        self.host = host

        self.bootstrap = ResourceBootstrap(
            self.host,
            api_url=self.config.api_url,
            script_timeout_ms=self.config.script_timeout_ms,
            module_timeout_ms=self.config.module_timeout_ms,
        )
        self.api: SharedResource[Any] = SharedResource(self._load_api, name="google.api")
        self.auth: SharedResource[GoogleAuth] = SharedResource(
            self._load_auth, name="google.auth"
        )
        self.sheets: SharedResource[GoogleSheetsAPI] = SharedResource(
            self._load_sheets, name="google.sheets"
        )
        # Sheets API rebuilds, one per signed-in user change
        self._sheets_api: Any = None
        self._sheets_update: Optional[Callable[[GoogleSheetsAPI], None]] = None
        self._sheets_target: Any = None
        self._sheets_user: Any = None
        self._sheets_generation = 0
        self._sheets_reload: Optional[asyncio.Task] = None

    async def _load_api(self, update: Callable[[Any], None]) -> Any:
        return await self.bootstrap.load(self.config.client_options())

    async def _load_auth(self, update: Callable[[GoogleAuth], None]) -> GoogleAuth:
        api = await self.api.resolve()
        return await GoogleAuth.load(api, self.config.module_timeout_ms)

    async def _load_sheets(self, update: Callable[[GoogleSheetsAPI], None]) -> GoogleSheetsAPI:
        api = await self.api.resolve()
        auth = await self.auth.resolve()
        self._sheets_api = api
        self._sheets_update = update
        user = self._sheets_target = auth.user
        sheets = await GoogleSheetsAPI.load(api)
        self._sheets_user = user

        # Services carry the user's credentials; rebuild whenever the user changes.
        def on_status_changed(user: Any, state: Any) -> None:
            if user is not self._sheets_target:
                self._start_sheets_reload(user)

        auth.on_status_changed(on_status_changed)
        return sheets

    def _start_sheets_reload(self, user: Any) -> asyncio.Task:
        """Rebuild the Sheets API for ``user``, superseding any pending rebuild."""
        self._sheets_generation += 1
        self._sheets_target = user
        if self._sheets_reload is not None:
            self._sheets_reload.cancel()

        task = asyncio.ensure_future(self._reload_sheets(user, self._sheets_generation))
        task.add_done_callback(self._on_reload_done)
        self._sheets_reload = task
        return task

    async def _reload_sheets(self, user: Any, generation: int) -> None:
        sheets = await GoogleSheetsAPI.load(self._sheets_api)
        if generation != self._sheets_generation:
            logger.debug("Dropping Sheets API from superseded reload %d", generation)
            return
        self._sheets_user = user
        self._sheets_update(sheets)

    @staticmethod
    def _on_reload_done(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Failed to reload the Sheets API", exc_info=task.exception())

    async def current_sheets(self) -> GoogleSheetsAPI:
        """
        Get the Sheets API built for the signed-in user.

        Waits for a rebuild in progress, and starts one if the last attempt
        for the current user failed.

        Raises:
            Exception: Whatever the rebuild for the current user failed with.
        """
        sheets = await self.sheets.resolve()
        auth = await self.auth.resolve()
        while self._sheets_user is not auth.user:
            task = self._sheets_reload
            if task is None or task.done():
                task = self._start_sheets_reload(auth.user)
            await asyncio.wait({task})
            if task is self._sheets_reload and not task.cancelled():
                task.result()
        return self.sheets.read() or sheets


# Context variable overriding the process default (e.g. per test or task)
_app_context: contextvars.ContextVar[Optional[AppContext]] = contextvars.ContextVar(
    "app_context", default=None
)

_default_context: Optional[AppContext] = None


def get_app_context() -> AppContext:
    """
    Get the current application context.

    Returns:
        The context set for the current execution context, otherwise the
        process default, created on first use.
    """
    global _default_context
    context = _app_context.get()
    if context is not None:
        return context
    if _default_context is None:
        _default_context = AppContext()
    return _default_context


def set_app_context(context: Optional[AppContext]) -> contextvars.Token:
    """
    Set the application context for the current execution context.

    Args:
        context: The context to use, or None to fall back to the default.
    """
    return _app_context.set(context)


@contextmanager
def use_app_context(context: AppContext) -> Iterator[AppContext]:
    """Temporarily make ``context`` current."""
    token = _app_context.set(context)
    try:
        yield context
    finally:
        _app_context.reset(token)
