"""
The ``auth2`` module of the Google API library.

Signs users in with the installed-app OAuth flow from google-auth-oauthlib
and tracks the current user, notifying listeners whenever it changes.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from google.oauth2.credentials import Credentials

from ..auth.scopes import BASE_SCOPES
from ..utils.constants import (
    DEFAULT_SIGN_IN_TIMEOUT_S,
    ERROR_ACCESS_DENIED,
    ERROR_POPUP_CLOSED,
)
from .library import LibraryError

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class UserProfile:
    """Basic profile of a signed-in Google user."""

    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    image_url: Optional[str] = None


class GoogleUser:
    """A Google user; anonymous unless both credentials and a profile are set."""

    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        profile: Optional[UserProfile] = None,
    ) -> None:
        self.credentials = credentials
        self.profile = profile

    def is_signed_in(self) -> bool:
        return self.credentials is not None and self.profile is not None

    def get_basic_profile(self) -> Optional[UserProfile]:
        return self.profile

    def __repr__(self) -> str:
        if not self.is_signed_in():
            return "GoogleUser(anonymous)"
        return f"GoogleUser({self.profile.email or self.profile.id})"


class CurrentUser:
    """The library's current user plus its change listeners."""

    def __init__(self) -> None:
        self._user = GoogleUser()
        self._listeners: List[Callable[[GoogleUser], None]] = []

    def get(self) -> GoogleUser:
        return self._user

    def listen(self, callback: Callable[[GoogleUser], None]) -> None:
        self._listeners.append(callback)

    def set(self, user: GoogleUser) -> None:
        if user is self._user:
            return
        self._user = user
        for listener in list(self._listeners):
            listener(user)


class AuthInstance:
    """Sign-in state for one OAuth client."""

    def __init__(
        self,
        client_id: str,
        client_secret: Optional[str],
        scopes: List[str],
        timeout_seconds: Optional[float] = DEFAULT_SIGN_IN_TIMEOUT_S,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout_seconds = timeout_seconds
        self.scopes = list(dict.fromkeys(scopes + BASE_SCOPES))
        self.current_user = CurrentUser()

    @property
    def credentials(self) -> Optional[Credentials]:
        """Current credentials; expired, non-refreshable ones sign the user out."""
        user = self.current_user.get()
        credentials = user.credentials
        if credentials is None:
            return None
        if getattr(credentials, "expired", False) and not getattr(credentials, "refresh_token", None):
            logger.info("Credentials for %r expired", user)
            self.current_user.set(GoogleUser())
            return None
        return credentials

    def client_config(self) -> Dict[str, Any]:
        config = {
            "client_id": self.client_id,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
        }
        if self.client_secret:
            config["client_secret"] = self.client_secret
        return {"installed": config}

    async def sign_in(self, **options: Any) -> GoogleUser:
        """
        Run the OAuth consent flow and make the result the current user.

        Args:
            **options: Passed to ``InstalledAppFlow.run_local_server``.

        Raises:
            LibraryError: ``popup_closed_by_user`` if consent was denied or
                the consent screen was left unanswered past ``timeout_seconds``.
        """
        try:
            credentials = await asyncio.to_thread(self._run_flow, options)
        except Exception as e:
            if getattr(e, "error", None) == ERROR_ACCESS_DENIED:
                raise LibraryError(ERROR_POPUP_CLOSED, str(e)) from e
            raise

        profile = await asyncio.to_thread(self._fetch_profile, credentials)
        user = GoogleUser(credentials, profile)
        self.current_user.set(user)
        return user

    async def sign_out(self) -> None:
        self.current_user.set(GoogleUser())

    def _run_flow(self, options: Dict[str, Any]) -> Credentials:
        from google_auth_oauthlib.flow import InstalledAppFlow

        flow = InstalledAppFlow.from_client_config(self.client_config(), scopes=self.scopes)
        options = {"port": 0, "timeout_seconds": self.timeout_seconds, **options}
        timeout = options["timeout_seconds"]
        started = time.monotonic()
        try:
            return flow.run_local_server(**options)
        except AttributeError as e:
            # The local server stops waiting after timeout_seconds and then has
            # no redirect to parse.
            if timeout is None or time.monotonic() - started < timeout:
                raise
            raise LibraryError(
                ERROR_POPUP_CLOSED, f"No consent response within {timeout:g}s"
            ) from e

    def _fetch_profile(self, credentials: Any) -> UserProfile:
        from googleapiclient.discovery import build

        service = build("oauth2", "v2", credentials=credentials, cache_discovery=False)
        info = service.userinfo().get().execute()
        return UserProfile(
            id=info.get("id", ""),
            email=info.get("email"),
            name=info.get("name"),
            image_url=info.get("picture"),
        )


class Auth2Module:
    """Entry point returned by ``gapi.load('auth2', ...)``."""

    requires = "google_auth_oauthlib.flow"

    def __init__(self, library: Any) -> None:
        self._library = library
        self._instance: Optional[AuthInstance] = None

    def get_auth_instance(self) -> AuthInstance:
        """Return the auth instance, creating it from the client configuration."""
        if self._instance is None:
            client = self._library.client
            if client is None or not client.initialized:
                raise LibraryError(
                    "client_not_initialized",
                    "The client module must be initialized before auth2",
                )
            self._instance = AuthInstance(
                client.config["clientId"],
                self._library.client_secret,
                client.scopes,
                timeout_seconds=self._library.sign_in_timeout_s,
            )
        return self._instance

    def current_credentials(self) -> Any:
        if self._instance is None:
            return None
        return self._instance.credentials
