"""Authentication MCP tools for sheetplan."""

import logging

from .main import mcp, get_context
from ..utils.errors import SheetPlanError, format_error

logger = logging.getLogger(__name__)


def _describe_user(user) -> str:
    profile = user.get_basic_profile()
    if profile is None:
        return "unknown user"
    if profile.name and profile.email:
        return f"{profile.name} <{profile.email}>"
    return profile.email or profile.name or profile.id


@mcp.tool()
async def google_auth_status() -> str:
    """
    Report whether a Google user is signed in.

    Returns:
        The signed-in user and session state, or why the API is unavailable.
    """
    context = get_context()
    try:
        auth = await context.auth.resolve()
    except SheetPlanError as e:
        return format_error("Loading Google API", e)

    if auth.user is None:
        return f"Not signed in (state: {auth.state.value})."
    return f"Signed in as {_describe_user(auth.user)} (state: {auth.state.value})."


@mcp.tool()
async def sign_in() -> str:
    """
    Sign in with a Google account.

    Opens the Google consent screen in a browser and waits for the user to
    finish. Calling this while a sign-in is running has no effect.

    Returns:
        The signed-in user, or a message explaining why sign-in did not happen.
    """
    context = get_context()
    try:
        auth = await context.auth.resolve()
        user = await auth.sign_in()
    except SheetPlanError as e:
        return format_error("Sign in", e)
    except Exception as e:
        logger.error(f"Unexpected sign-in failure: {e}", exc_info=True)
        return f"Sign in failed: Unexpected error ({type(e).__name__}: {e})"

    if user is None:
        return "Sign in did not complete (canceled or already in progress)."
    return f"Signed in as {_describe_user(user)}."


@mcp.tool()
async def sign_out() -> str:
    """
    Sign the current Google user out.

    Returns:
        Confirmation or error message.
    """
    context = get_context()
    try:
        auth = await context.auth.resolve()
        await auth.sign_out()
    except SheetPlanError as e:
        return format_error("Sign out", e)

    return "Signed out."
