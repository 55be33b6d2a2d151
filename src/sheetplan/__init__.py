"""sheetplan - financial plans in Google Sheets.

This package loads the Google API client library on demand, shares it with
every consumer through an application context, and tracks the signed-in
Google user.
"""
from .core.context import AppContext, get_app_context, set_app_context
from .core.singleton import SharedResource
from .api.bootstrap import ClientOptions, ResourceBootstrap, load_google_api
from .auth.session import AuthState, GoogleAuth
from .plan import Plan

__version__ = "0.1.0"
__all__ = [
    "AppContext",
    "get_app_context",
    "set_app_context",
    "SharedResource",
    "ClientOptions",
    "ResourceBootstrap",
    "load_google_api",
    "AuthState",
    "GoogleAuth",
    "Plan",
]
