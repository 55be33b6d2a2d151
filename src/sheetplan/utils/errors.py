"""Custom exceptions for sheetplan.

This module provides structured error handling with specific exception types
for the bootstrap, session and spreadsheet failure scenarios. All exceptions
inherit from SheetPlanError.
"""
from typing import Any, Optional, Sequence


class SheetPlanError(Exception):
    """Base exception for all sheetplan errors.

    Attributes:
        message: Human-readable error description.
        resource_id: Optional spreadsheet/plan ID related to the error.
    """

    def __init__(self, message: str, resource_id: Optional[str] = None) -> None:
        self.message = message
        self.resource_id = resource_id
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the error message, optionally including the resource ID."""
        if self.resource_id:
            return f"{self.message} (resource: {self.resource_id})"
        return self.message


class ConfigurationError(SheetPlanError):
    """Raised when required configuration is missing or invalid."""
    pass


# Bootstrap


class BootstrapError(SheetPlanError):
    """Base class for failures while loading the client library."""
    pass


class BootstrapTimeout(BootstrapError):
    """Raised when the library global does not appear in time.

    Attributes:
        timeout_ms: The configured timeout.
        elapsed_ms: How long we actually waited.
    """

    def __init__(self, timeout_ms: float, elapsed_ms: float) -> None:
        self.timeout_ms = timeout_ms
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"Timed out trying to load the Google API after {elapsed_ms:.0f} "
            f"milliseconds (limit {timeout_ms:.0f})"
        )


class ModuleLoadError(BootstrapError):
    """Raised when the library reports an error loading module(s)."""

    def __init__(self, module_names: Sequence[str], cause: Any = None) -> None:
        self.module_names = list(module_names)
        self.cause = cause
        super().__init__(
            f"Failed to load Google API module(s) {':'.join(self.module_names)}: {cause}"
        )


class ModuleLoadTimeout(BootstrapError):
    """Raised when the library's own module load timeout fires."""

    def __init__(self, module_names: Sequence[str], timeout_ms: float) -> None:
        self.module_names = list(module_names)
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Timed out loading Google API module(s) {':'.join(self.module_names)} "
            f"after {timeout_ms:.0f} milliseconds"
        )


class ClientInitError(BootstrapError):
    """Raised when the library's client initialization rejects."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to initialize the Google API client: {cause}")


# Session


class SessionError(SheetPlanError):
    """Base class for sign-in/sign-out failures."""
    pass


class SessionBusy(SessionError):
    """Raised when an opposing session operation is already in flight."""

    def __init__(self, requested: str, current: str) -> None:
        self.requested = requested
        self.current = current
        super().__init__(
            f"Please wait for the current operation ({current}) to complete "
            f"before {requested}"
        )


class SignInError(SessionError):
    """Raised when the library fails to sign a user in."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to sign in: {cause}")


class SignOutError(SessionError):
    """Raised when the library fails to sign the user out."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to sign out: {cause}")


# Google API


class AuthenticationError(SheetPlanError):
    """Raised when authentication fails or token is expired."""
    pass


class NotFoundError(SheetPlanError):
    """Raised when a requested spreadsheet doesn't exist or was deleted."""
    pass


class PermissionDeniedError(SheetPlanError):
    """Raised when access to a spreadsheet is denied."""
    pass


class QuotaExceededError(SheetPlanError):
    """Raised when API rate limit or quota is exceeded."""
    pass


def handle_http_error(error: Any, resource_id: Optional[str] = None) -> SheetPlanError:
    """Convert googleapiclient HttpError to a specific exception.

    Args:
        error: The HttpError from googleapiclient.
        resource_id: Optional spreadsheet ID for context.

    Returns:
        An appropriate SheetPlanError subclass.
    """
    try:
        status = error.resp.status
    except AttributeError:
        return SheetPlanError(f"API error: {str(error)}", resource_id)

    if status == 401:
        return AuthenticationError(
            "Authentication failed. Please sign in again.",
            resource_id
        )
    elif status == 403:
        return PermissionDeniedError(
            "Access denied. Check spreadsheet sharing settings or request access.",
            resource_id
        )
    elif status == 404:
        return NotFoundError(
            "Spreadsheet not found. It may have been deleted or moved.",
            resource_id
        )
    elif status == 429:
        return QuotaExceededError(
            "API quota exceeded. Please wait a moment and try again.",
            resource_id
        )
    else:
        return SheetPlanError(f"API error (HTTP {status}): {str(error)}", resource_id)


def format_error(action: str, error: Exception) -> str:
    """Format an error message consistently.

    Args:
        action: The action that failed (e.g., "Sign in", "Create plan").
        error: The exception that occurred.

    Returns:
        Formatted error string.
    """
    if isinstance(error, SheetPlanError):
        return f"{action} failed: {error.message}"
    return f"{action} failed: {str(error)}"
