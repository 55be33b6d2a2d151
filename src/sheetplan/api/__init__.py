"""Loading of the Google API client library."""

from .bootstrap import (
    BootstrapState,
    ClientOptions,
    ResourceBootstrap,
    initialize_client,
    load_google_api,
    load_modules,
)

__all__ = [
    "BootstrapState",
    "ClientOptions",
    "ResourceBootstrap",
    "initialize_client",
    "load_google_api",
    "load_modules",
]
