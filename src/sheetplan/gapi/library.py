"""
The Google API client library as seen by the bootstrap.

GoogleAPILibrary is what the host publishes under the ``gapi`` global once
the API script has been "executed". Its ``load`` entrypoint mirrors the
callback style of the hosted library: modules are requested by
colon-joined name and exactly one of callback/onerror/ontimeout fires.
"""

import asyncio
import importlib
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from ..utils.constants import (
    API_GLOBAL_NAME,
    DEFAULT_SIGN_IN_TIMEOUT_S,
    MODULE_AUTH2,
    MODULE_CLIENT,
    MODULE_SEPARATOR,
)

logger = logging.getLogger(__name__)


class LibraryError(Exception):
    """Failure reported by the client library.

    Attributes:
        error: Machine readable discriminator (e.g. ``popup_closed_by_user``).
        details: Optional human readable description.
    """

    def __init__(self, error: str, details: Optional[str] = None) -> None:
        self.error = error
        self.details = details
        super().__init__(f"{error}: {details}" if details else error)


class GoogleAPILibrary:
    """Python implementation of the ``gapi`` global."""

    def __init__(
        self,
        client_secret: Optional[str] = None,
        sign_in_timeout_s: Optional[float] = DEFAULT_SIGN_IN_TIMEOUT_S,
    ) -> None:
        from .auth2 import Auth2Module
        from .client import ClientModule

        self.client_secret = client_secret
        self.sign_in_timeout_s = sign_in_timeout_s
        self.client: Optional[ClientModule] = None
        self.auth2: Optional[Auth2Module] = None
        self._module_types: Dict[str, Any] = {
            MODULE_CLIENT: ClientModule,
            MODULE_AUTH2: Auth2Module,
        }
        self._tasks: Set[asyncio.Task] = set()

    @property
    def credentials(self) -> Any:
        """Credentials of the signed-in user, if any."""
        if self.auth2 is None:
            return None
        return self.auth2.current_credentials()

    def load(
        self,
        names: str,
        callback: Optional[Callable[[], None]] = None,
        *,
        timeout: Optional[float] = None,
        onerror: Optional[Callable[[BaseException], None]] = None,
        ontimeout: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Load one or more modules asynchronously.

        Args:
            names: Module names joined by ``:`` (e.g. ``"client:auth2"``).
            callback: Called once every module is available.
            timeout: Milliseconds before ``ontimeout`` fires instead.
            onerror: Called with the failure if a module cannot be loaded.
            ontimeout: Called if loading exceeds ``timeout``.
        """
        requested = [name for name in names.split(MODULE_SEPARATOR) if name]
        task = asyncio.get_running_loop().create_task(
            self._load(requested, callback, timeout, onerror, ontimeout)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _load(
        self,
        names: List[str],
        callback: Optional[Callable[[], None]],
        timeout: Optional[float],
        onerror: Optional[Callable[[BaseException], None]],
        ontimeout: Optional[Callable[[], None]],
    ) -> None:
        try:
            if timeout is None:
                await self._load_modules(names)
            else:
                await asyncio.wait_for(self._load_modules(names), timeout / 1000.0)
        except asyncio.TimeoutError:
            logger.debug("Timed out loading %s", names)
            if ontimeout:
                ontimeout()
            return
        except Exception as e:
            logger.debug("Error loading %s: %s", names, e)
            if onerror:
                onerror(e)
            return

        if callback:
            callback()

    async def _load_modules(self, names: List[str]) -> None:
        for name in names:
            module_type = self._module_types.get(name)
            if module_type is None:
                raise LibraryError("unknown_module", f"No such module: {name}")
            if getattr(self, name) is not None:
                continue

            # Importing the backing package can be slow on a cold start.
            await asyncio.to_thread(importlib.import_module, module_type.requires)
            setattr(self, name, module_type(self))
            logger.debug("Loaded module %s", name)


def install_google_api_loader(
    host: Any,
    url: str,
    client_secret: Optional[str] = None,
    sign_in_timeout_s: Optional[float] = DEFAULT_SIGN_IN_TIMEOUT_S,
) -> None:
    """Make ``host`` publish a GoogleAPILibrary global once ``url`` is injected."""

    def execute_script() -> None:
        if API_GLOBAL_NAME not in host.globals:
            host.globals[API_GLOBAL_NAME] = GoogleAPILibrary(client_secret, sign_in_timeout_s)
            logger.debug("Published %s global", API_GLOBAL_NAME)

    host.document.register_loader(url, execute_script)
