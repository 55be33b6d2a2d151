"""
The ``client`` module of the Google API library.

Holds the configuration given to ``init`` and builds discovery based
googleapiclient services for each configured discovery document.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .library import LibraryError

logger = logging.getLogger(__name__)

REQUIRED_CONFIG_KEYS = ["apiKey", "discoveryDocs", "clientId", "scope"]


def parse_discovery_url(url: str) -> Tuple[str, str]:
    """
    Extract the API name and version from a discovery document URL.

    Supports both ``https://sheets.googleapis.com/$discovery/rest?version=v4``
    and ``https://www.googleapis.com/discovery/v1/apis/sheets/v4/rest``.

    Raises:
        ValueError: If the URL matches neither form.
    """
    parsed = urlparse(url)
    parts = [part for part in parsed.path.split("/") if part]

    if "$discovery" in parts:
        name = (parsed.hostname or "").split(".")[0]
        version = parse_qs(parsed.query).get("version", [""])[0]
    elif "apis" in parts and len(parts) > parts.index("apis") + 2:
        index = parts.index("apis")
        name, version = parts[index + 1], parts[index + 2]
    else:
        name = version = ""

    if not name or not version:
        raise ValueError(f"Unrecognized discovery document URL: {url}")
    return name, version


class ClientModule:
    """Configured API client with one service per discovery document."""

    requires = "googleapiclient.discovery"

    def __init__(self, library: Any) -> None:
        self._library = library
        self.config: Optional[Dict[str, Any]] = None
        self._documents: Dict[str, Tuple[str, str]] = {}
        self._services: Dict[str, Tuple[Any, Any]] = {}

    @property
    def initialized(self) -> bool:
        return self.config is not None

    @property
    def scopes(self) -> List[str]:
        if not self.config:
            return []
        return self.config["scope"].split()

    async def init(self, config: Dict[str, Any]) -> None:
        """
        Initialize the client.

        Args:
            config: ``apiKey``, ``discoveryDocs``, ``clientId`` and a
                space-joined ``scope``.

        Raises:
            LibraryError: If the configuration is incomplete or a discovery
                document cannot be used.
        """
        missing = [key for key in REQUIRED_CONFIG_KEYS if not config.get(key)]
        if missing:
            raise LibraryError("invalid_config", f"Missing {', '.join(missing)}")

        documents: Dict[str, Tuple[str, str]] = {}
        for url in config["discoveryDocs"]:
            try:
                name, version = parse_discovery_url(url)
            except ValueError as e:
                raise LibraryError("invalid_discovery_doc", str(e)) from e
            documents[name] = (version, url)

        self.config = dict(config)
        self._documents = documents

        for name in documents:
            service = await asyncio.to_thread(self._build, name, None)
            self._services[name] = (None, service)
            logger.debug("Built %s service", name)

    async def get_service(self, name: str) -> Any:
        """Return the named service, authorized as the current user if signed in."""
        if name not in self._documents:
            raise LibraryError("unknown_api", f"No discovery document for {name}")

        credentials = self._library.credentials
        cached = self._services.get(name)
        if cached and cached[0] is credentials:
            return cached[1]

        service = await asyncio.to_thread(self._build, name, credentials)
        self._services[name] = (credentials, service)
        return service

    def _build(self, name: str, credentials: Any) -> Any:
        from googleapiclient.discovery import build

        version, url = self._documents[name]
        return build(
            name,
            version,
            discoveryServiceUrl=url,
            developerKey=self.config["apiKey"],
            credentials=credentials,
            static_discovery=False,
            cache_discovery=False,
        )
