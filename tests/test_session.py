"""Unit tests for the GoogleAuth session state machine."""

import asyncio
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from fakes import FakeAuth2, FakeAuthInstance, FakeLibrary, install_fake_library, make_user
from sheetplan.api.bootstrap import ClientOptions, load_google_api
from sheetplan.auth.session import AuthState, GoogleAuth
from sheetplan.core.host import AsyncioScheduler, Host
from sheetplan.gapi.auth2 import GoogleUser
from sheetplan.gapi.library import LibraryError
from sheetplan.utils.constants import DEFAULT_API_URL
from sheetplan.utils.errors import SessionBusy, SignInError, SignOutError


def make_auth(user=None):
    instance = FakeAuthInstance(user)
    return GoogleAuth(FakeAuth2(instance)), instance


async def start(coroutine):
    """Schedule ``coroutine`` and let it run up to its first suspension."""
    task = asyncio.ensure_future(coroutine)
    await asyncio.sleep(0)
    return task


class TestInitialState:
    """Tests for construction and subscription."""

    def test_starts_idle_without_user(self):
        auth, _ = make_auth()

        assert auth.state == AuthState.IDLE
        assert auth.user is None
        assert not auth.signed_in

    def test_picks_up_already_signed_in_user(self):
        user = make_user()
        auth, _ = make_auth(user)

        assert auth.user is user

    def test_subscriber_replayed_immediately(self):
        """Registration synchronously delivers the current pair."""
        auth, _ = make_auth()
        events = []

        auth.on_status_changed(lambda user, state: events.append((user, state)))

        assert events == [(None, AuthState.IDLE)]

    def test_unsubscribe_stops_delivery(self):
        auth, instance = make_auth()
        events = []
        unsubscribe = auth.on_status_changed(lambda user, state: events.append(state))

        unsubscribe()
        unsubscribe()
        instance.current_user.set(make_user())

        assert events == [AuthState.IDLE]

    def test_library_pushed_user_changes_are_broadcast(self):
        """Changes the library reports on its own (e.g. expiry) update the user."""
        user = make_user()
        auth, instance = make_auth(user)
        events = []
        auth.on_status_changed(lambda u, state: events.append((u, state)))

        instance.current_user.set(GoogleUser())

        assert auth.user is None
        assert events == [(user, AuthState.IDLE), (None, AuthState.IDLE)]


class TestSignIn:
    """Tests for sign_in."""

    @pytest.mark.asyncio
    async def test_sign_in_sets_user(self):
        auth, instance = make_auth()
        user = make_user()

        task = await start(auth.sign_in())
        assert auth.state == AuthState.SIGNING_IN
        instance.complete_sign_in(user)

        assert await task is user
        assert auth.user is user
        assert auth.state == AuthState.IDLE

    @pytest.mark.asyncio
    async def test_repeated_sign_in_delegates_once(self):
        """A second sign_in while one is in flight is a no-op."""
        auth, instance = make_auth()

        first = await start(auth.sign_in())
        assert await auth.sign_in() is None
        instance.complete_sign_in(make_user())
        await first

        assert instance.sign_in_calls == 1

    @pytest.mark.asyncio
    async def test_sign_out_while_signing_in_is_busy(self):
        """The opposing operation fails fast and leaves the state alone."""
        auth, instance = make_auth()

        first = await start(auth.sign_in())
        with pytest.raises(SessionBusy):
            await auth.sign_out()

        assert auth.state == AuthState.SIGNING_IN
        assert instance.sign_out_calls == 0
        instance.complete_sign_in(make_user())
        await first

    @pytest.mark.asyncio
    async def test_dismissed_prompt_is_not_an_error(self):
        """popup_closed_by_user is logged, not raised."""
        auth, instance = make_auth()

        task = await start(auth.sign_in())
        instance.fail_sign_in(LibraryError("popup_closed_by_user"))

        assert await task is None
        assert auth.user is None
        assert auth.state == AuthState.IDLE

    @pytest.mark.asyncio
    async def test_other_failures_raise_sign_in_error(self):
        """Non-cancellation failures surface and the machine returns to idle."""
        auth, instance = make_auth()
        cause = LibraryError("immediate_failed")

        task = await start(auth.sign_in())
        instance.fail_sign_in(cause)

        with pytest.raises(SignInError) as error:
            await task
        assert error.value.cause is cause
        assert auth.state == AuthState.IDLE

        second = await start(auth.sign_in())
        assert auth.state == AuthState.SIGNING_IN
        instance.complete_sign_in(make_user())
        await second


class TestSignOut:
    """Tests for sign_out."""

    @pytest.mark.asyncio
    async def test_sign_in_while_signing_out_is_busy(self):
        auth, instance = make_auth(make_user())
        instance.hold_sign_out = True

        task = await start(auth.sign_out())
        with pytest.raises(SessionBusy):
            await auth.sign_in()

        assert auth.state == AuthState.SIGNING_OUT
        instance.complete_sign_out()
        await task
        assert auth.user is None

    @pytest.mark.asyncio
    async def test_repeated_sign_out_is_ignored(self):
        auth, instance = make_auth(make_user())
        instance.hold_sign_out = True

        task = await start(auth.sign_out())
        await auth.sign_out()
        instance.complete_sign_out()
        await task

        assert instance.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_failure_raises_sign_out_error(self):
        auth, instance = make_auth(make_user())

        async def broken():
            raise RuntimeError("revoke failed")

        instance.sign_out = broken

        with pytest.raises(SignOutError):
            await auth.sign_out()
        assert auth.state == AuthState.IDLE


class TestEndToEnd:
    """Bootstrap, sign in and sign out against a fake library."""

    @pytest.mark.asyncio
    async def test_full_session(self):
        host = Host(scheduler=AsyncioScheduler(interval_ms=1))
        library = FakeLibrary()
        install_fake_library(host, DEFAULT_API_URL, library)
        options = ClientOptions(client_id="client", api_key="key", scopes=["openid"])

        api = await load_google_api(host, options)
        auth = await GoogleAuth.load(api)
        events = []
        auth.on_status_changed(lambda user, state: events.append((user, state)))

        user = make_user()
        task = await start(auth.sign_in())
        library.auth2.instance.complete_sign_in(user)
        assert await task is user

        states = [state for _, state in events]
        assert states[0] == AuthState.IDLE
        assert AuthState.SIGNING_IN in states
        assert events[-1] == (user, AuthState.IDLE)

        events.clear()
        await auth.sign_out()

        assert events[0] == (user, AuthState.SIGNING_OUT)
        assert events[-1] == (None, AuthState.IDLE)
        assert ("auth2", 15000) in library.load_calls
