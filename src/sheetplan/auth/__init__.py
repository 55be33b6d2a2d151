"""
Authentication package for sheetplan.

This package provides:
- OAuth scope definitions
- The Google sign-in session state machine
"""

from .scopes import SCOPES, BASE_SCOPES, SHEETS_SCOPES, get_scopes
from .session import AuthState, GoogleAuth

__all__ = [
    # Scopes
    "SCOPES",
    "BASE_SCOPES",
    "SHEETS_SCOPES",
    "get_scopes",
    # Session
    "AuthState",
    "GoogleAuth",
]
