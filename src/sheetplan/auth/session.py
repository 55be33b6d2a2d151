"""
Google sign-in session for sheetplan.

GoogleAuth tracks the signed-in user on top of the library's ``auth2``
module. At most one of sign-in or sign-out is in flight at a time: repeating
the running operation is ignored and requesting the opposite one fails fast
with SessionBusy.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from ..api.bootstrap import load_modules
from ..utils.constants import (
    DEFAULT_MODULE_TIMEOUT_MS,
    ERROR_POPUP_CLOSED,
    MODULE_AUTH2,
)
from ..utils.errors import SessionBusy, SignInError, SignOutError

logger = logging.getLogger(__name__)


class AuthState(str, Enum):
    IDLE = "idle"
    SIGNING_IN = "signing-in"
    SIGNING_OUT = "signing-out"


StatusChanged = Callable[[Optional[Any], AuthState], None]


class GoogleAuth:
    """Authenticated-session state machine over the ``auth2`` module."""

    @classmethod
    async def load(cls, api: Any, timeout_ms: float = DEFAULT_MODULE_TIMEOUT_MS) -> "GoogleAuth":
        """Load the auth2 module from an initialized library and wrap it."""
        modules = await load_modules(api, MODULE_AUTH2, timeout_ms)
        return cls(modules[MODULE_AUTH2])

    def __init__(self, module: Any) -> None:
        self.state = AuthState.IDLE
        self.user: Optional[Any] = None
        self._auth = module.get_auth_instance()
        self._callbacks: Dict[object, StatusChanged] = {}
        self._initialize_current_user()

    # Users

    @staticmethod
    def _to_user(user: Any) -> Optional[Any]:
        if user is None or not user.is_signed_in():
            return None
        return user

    def _initialize_current_user(self) -> None:
        self.user = self._to_user(self._auth.current_user.get())

        # Library pushed changes (e.g. expiry) arrive here as well as the
        # results of our own sign_in/sign_out.
        def on_current_user(user: Any) -> None:
            logger.debug("Library current user changed: %r", user)
            self._set_user(self._to_user(user))

        self._auth.current_user.listen(on_current_user)

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    async def sign_in(self, **options: Any) -> Optional[Any]:
        """
        Sign a user in.

        Returns:
            The signed-in user, or None if the user dismissed the prompt or a
            sign-in was already in progress.

        Raises:
            SessionBusy: If a sign-out is in progress.
            SignInError: If the library failed for any reason other than the
                user dismissing the prompt.
        """
        if self.state != AuthState.IDLE:
            if self.state == AuthState.SIGNING_IN:
                logger.warning("Already signing in; ignoring")
                return None
            raise SessionBusy("signing in", self.state.value)

        try:
            self._set_state(AuthState.SIGNING_IN)
            user = await self._auth.sign_in(**options)
            self._set_user(self._to_user(user))
            return self.user
        except Exception as e:
            if getattr(e, "error", None) == ERROR_POPUP_CLOSED:
                logger.info("User canceled sign in: %s", e)
                return None
            logger.error("Failed to sign in: %s", e)
            raise SignInError(e) from e
        finally:
            self._set_state(AuthState.IDLE)

    async def sign_out(self) -> None:
        """
        Sign the current user out.

        Raises:
            SessionBusy: If a sign-in is in progress.
            SignOutError: If the library failed to sign out.
        """
        if self.state != AuthState.IDLE:
            if self.state == AuthState.SIGNING_OUT:
                logger.warning("Already signing out; ignoring")
                return
            raise SessionBusy("signing out", self.state.value)

        try:
            self._set_state(AuthState.SIGNING_OUT)
            await self._auth.sign_out()
            self._set_user(None)
        except Exception as e:
            logger.error("Failed to sign out: %s", e)
            raise SignOutError(e) from e
        finally:
            self._set_state(AuthState.IDLE)

    # State changes

    def _set_state(self, new_state: AuthState) -> None:
        if self.state == new_state:
            return
        self.state = new_state
        self._emit_status_changed()

    def _set_user(self, new_user: Optional[Any]) -> None:
        if self.user is new_user:
            return
        self.user = new_user
        self._emit_status_changed()

    def _emit_status_changed(self) -> None:
        user, state = self.user, self.state
        logger.debug("State change: state=%s user=%r", state.value, user)

        for token, callback in list(self._callbacks.items()):
            if token not in self._callbacks:
                continue
            try:
                callback(user, state)
            except Exception:
                logger.exception("Status change callback raised")

    def on_status_changed(self, callback: StatusChanged) -> Callable[[], None]:
        """
        Register ``callback(user, state)`` for every change.

        The current pair is replayed immediately. Returns an idempotent
        function that removes the callback.
        """
        token = object()
        self._callbacks[token] = callback
        callback(self.user, self.state)

        def unsubscribe() -> None:
            self._callbacks.pop(token, None)

        return unsubscribe
