"""
Python implementation of the Google API client library.

The bootstrap treats this package as an external library: it is published
as a host global and only reached through ``load``, ``client.init`` and the
``auth2`` module.
"""

from .library import GoogleAPILibrary, LibraryError, install_google_api_loader
from .client import ClientModule, parse_discovery_url
from .auth2 import Auth2Module, AuthInstance, CurrentUser, GoogleUser, UserProfile

__all__ = [
    "GoogleAPILibrary",
    "LibraryError",
    "install_google_api_loader",
    "ClientModule",
    "parse_discovery_url",
    "Auth2Module",
    "AuthInstance",
    "CurrentUser",
    "GoogleUser",
    "UserProfile",
]
