"""
Bootstrap of the Google API client library.

Loading happens in four steps, each of which can fail on its own:

1. inject the API script into the host document (at most once),
2. poll on host ticks until the ``gapi`` global is defined,
3. load the ``client`` module through the library's own ``load``,
4. initialize the client with the API key, discovery documents and scopes.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..core.host import Host, ScriptElement
from ..utils.aio import Deferred
from ..utils.constants import (
    API_GLOBAL_NAME,
    DEFAULT_API_URL,
    DEFAULT_DISCOVERY_DOCS,
    DEFAULT_MODULE_TIMEOUT_MS,
    DEFAULT_SCRIPT_TIMEOUT_MS,
    MODULE_CLIENT,
    MODULE_SEPARATOR,
)
from ..utils.errors import (
    BootstrapTimeout,
    ClientInitError,
    ModuleLoadError,
    ModuleLoadTimeout,
)

logger = logging.getLogger(__name__)


class BootstrapState(str, Enum):
    NOT_STARTED = "not-started"
    INJECTING = "injecting"
    POLLING = "polling"
    READY = "ready"
    FAILED = "failed"


@dataclass
class ClientOptions:
    """Options used to initialize the Google API client."""

    client_id: str
    api_key: str
    discovery_docs: List[str] = field(default_factory=lambda: list(DEFAULT_DISCOVERY_DOCS))
    scopes: List[str] = field(default_factory=list)

    def to_init_config(self) -> Dict[str, Any]:
        """The configuration object expected by ``client.init``."""
        return {
            "apiKey": self.api_key,
            "discoveryDocs": list(self.discovery_docs),
            "clientId": self.client_id,
            "scope": " ".join(self.scopes),
        }


async def load_modules(
    api: Any,
    names: Union[str, Sequence[str]],
    timeout_ms: float = DEFAULT_MODULE_TIMEOUT_MS,
) -> Dict[str, Any]:
    """
    Load one or more Google API modules.

    Args:
        api: The library handle (the ``gapi`` global).
        names: A module name or several, requested as one batch.
        timeout_ms: Passed to the library as its own load timeout.

    Returns:
        Mapping of module name to the loaded module.

    Raises:
        ModuleLoadError: If the library reports an error.
        ModuleLoadTimeout: If the library's timeout fires first.
    """
    names = [names] if isinstance(names, str) else list(names)
    joined_names = MODULE_SEPARATOR.join(names)
    logger.debug("Loading module(s) %s (timeout %s ms)", joined_names, timeout_ms)

    deferred: Deferred[Dict[str, Any]] = Deferred()

    def on_loaded() -> None:
        try:
            modules = {name: getattr(api, name) for name in names}
        except Exception as e:
            logger.debug("Module(s) %s missing after load: %s", joined_names, e)
            deferred.reject(ModuleLoadError(names, e))
            return
        logger.debug("Loaded module(s) %s", joined_names)
        deferred.resolve(modules)

    def on_error(error: Any) -> None:
        logger.debug("Error loading module(s) %s: %s", joined_names, error)
        deferred.reject(ModuleLoadError(names, error))

    def on_timeout() -> None:
        logger.debug("Timeout loading module(s) %s", joined_names)
        deferred.reject(ModuleLoadTimeout(names, timeout_ms))

    api.load(
        joined_names,
        on_loaded,
        timeout=timeout_ms,
        onerror=on_error,
        ontimeout=on_timeout,
    )
    return await deferred


async def initialize_client(client: Any, options: ClientOptions) -> None:
    """
    Initialize the core Google API client.

    Raises:
        ClientInitError: Wrapping whatever ``client.init`` failed with.
    """
    config = options.to_init_config()
    logger.debug(
        "Initializing client %s with %d discovery document(s), scope %r",
        config["clientId"],
        len(config["discoveryDocs"]),
        config["scope"],
    )

    try:
        await client.init(config)
    except Exception as e:
        logger.debug("Client init failed: %s", e)
        raise ClientInitError(e) from e
    logger.debug("Client initialized")


class ResourceBootstrap:
    """
    Injects the API script into a host and waits for its global.

    Several bootstraps may share one host; the script element check keeps
    injection to a single element per URL.
    """

    def __init__(
        self,
        host: Host,
        api_url: str = DEFAULT_API_URL,
        global_name: str = API_GLOBAL_NAME,
        script_timeout_ms: float = DEFAULT_SCRIPT_TIMEOUT_MS,
        module_timeout_ms: float = DEFAULT_MODULE_TIMEOUT_MS,
    ) -> None:
        self.host = host
        self.api_url = api_url
        self.global_name = global_name
        self.script_timeout_ms = script_timeout_ms
        self.module_timeout_ms = module_timeout_ms
        self.state = BootstrapState.NOT_STARTED

    def _set_state(self, state: BootstrapState) -> None:
        if state != self.state:
            logger.debug("Bootstrap %s -> %s", self.state.value, state.value)
            self.state = state

    def ensure_script_injected(self, url: Optional[str] = None) -> bool:
        """
        Attach the API script to the host document unless already present.

        Returns:
            True if a new script element was added.
        """
        url = url or self.api_url
        self._set_state(BootstrapState.INJECTING)

        if self.host.document.query_script(url) is not None:
            logger.debug("Google API script is already loaded; reusing")
            return False

        self.host.document.append_script(ScriptElement(src=url))
        logger.debug("Injected script %s", url)
        return True

    async def wait_for_global_ready(self, timeout_ms: Optional[float] = None) -> Any:
        """
        Poll on host ticks until the library global is defined.

        Raises:
            BootstrapTimeout: If the global is still missing after ``timeout_ms``.
        """
        timeout_ms = self.script_timeout_ms if timeout_ms is None else timeout_ms
        self._set_state(BootstrapState.POLLING)

        deferred: Deferred[Any] = Deferred()
        started_at = self.host.clock()

        def check() -> None:
            duration = self.host.clock() - started_at
            handle = self.host.globals.get(self.global_name)
            if handle is not None:
                logger.debug("Loaded after %.0f milliseconds", duration)
                deferred.resolve(handle)
            elif duration > timeout_ms:
                logger.debug("Timeout after %.0f milliseconds", duration)
                deferred.reject(BootstrapTimeout(timeout_ms, duration))
            else:
                self.host.scheduler.schedule_next_check(check)

        check()
        return await deferred

    async def load(self, options: ClientOptions) -> Any:
        """
        Run the whole bootstrap and return the initialized library handle.

        Any failing step fails the bootstrap; nothing here retries.
        """
        logger.debug("Bootstrapping Google API from %s", self.api_url)
        try:
            self.ensure_script_injected()
            api = await self.wait_for_global_ready()
            modules = await load_modules(api, MODULE_CLIENT, self.module_timeout_ms)
            await initialize_client(modules[MODULE_CLIENT], options)
        except Exception:
            self._set_state(BootstrapState.FAILED)
            raise

        self._set_state(BootstrapState.READY)
        return api


async def load_google_api(host: Host, options: ClientOptions, **bootstrap_options: Any) -> Any:
    """Load the core Google API client into ``host``."""
    return await ResourceBootstrap(host, **bootstrap_options).load(options)
