"""
Configuration management for sheetplan.

This module centralizes configuration values to avoid hardcoded values
scattered throughout the codebase. Values come from the environment; a local
``.env`` file is honoured.
"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..auth.scopes import get_scopes
from ..utils.constants import (
    DEFAULT_API_URL,
    DEFAULT_DISCOVERY_DOCS,
    DEFAULT_MODULE_TIMEOUT_MS,
    DEFAULT_POLL_INTERVAL_MS,
    DEFAULT_SCRIPT_TIMEOUT_MS,
    DEFAULT_SIGN_IN_TIMEOUT_S,
)
from ..utils.errors import ConfigurationError

# Load environment variables
load_dotenv()


def _split_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class AppConfig:
    """
    Centralized configuration.

    Provides a single source of truth for the API key, OAuth client and
    bootstrap timeouts.
    """

    def __init__(self) -> None:
        # OAuth client configuration
        self.api_key = os.getenv("GOOGLE_API_KEY")
        self.client_id = os.getenv("GOOGLE_OAUTH_CLIENT_ID")
        self.client_secret = os.getenv("GOOGLE_OAUTH_CLIENT_SECRET")

        # Client library
        self.api_url = os.getenv("SHEETPLAN_API_URL", DEFAULT_API_URL)
        self.discovery_docs = _split_list(
            os.getenv("SHEETPLAN_DISCOVERY_DOCS"), DEFAULT_DISCOVERY_DOCS
        )
        self.scopes = _split_list(os.getenv("SHEETPLAN_SCOPES"), get_scopes())

        # Bootstrap timing (milliseconds)
        self.script_timeout_ms = float(
            os.getenv("SHEETPLAN_SCRIPT_TIMEOUT_MS", DEFAULT_SCRIPT_TIMEOUT_MS)
        )
        self.module_timeout_ms = float(
            os.getenv("SHEETPLAN_MODULE_TIMEOUT_MS", DEFAULT_MODULE_TIMEOUT_MS)
        )
        self.poll_interval_ms = float(
            os.getenv("SHEETPLAN_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS)
        )
        self.sign_in_timeout_s = float(
            os.getenv("SHEETPLAN_SIGN_IN_TIMEOUT_S", DEFAULT_SIGN_IN_TIMEOUT_S)
        )

        self.log_level = os.getenv("SHEETPLAN_LOG_LEVEL", "INFO").upper()

    def is_configured(self) -> bool:
        """Check if the API key and OAuth client ID are set."""
        return bool(self.api_key and self.client_id)

    def client_options(self) -> Any:
        """
        Build the options used to initialize the Google API client.

        Raises:
            ConfigurationError: If the API key or client ID is missing.
        """
        from ..api.bootstrap import ClientOptions

        if not self.is_configured():
            raise ConfigurationError(
                "Google API credentials not configured. Set GOOGLE_API_KEY and "
                "GOOGLE_OAUTH_CLIENT_ID."
            )
        return ClientOptions(
            client_id=self.client_id,
            api_key=self.api_key,
            discovery_docs=list(self.discovery_docs),
            scopes=list(self.scopes),
        )

    def get_environment_summary(self) -> Dict[str, Any]:
        """Get a summary of the current configuration (excluding secrets)."""
        return {
            "api_url": self.api_url,
            "client_configured": self.is_configured(),
            "client_secret_configured": bool(self.client_secret),
            "discovery_docs": self.discovery_docs,
            "scopes": self.scopes,
            "script_timeout_ms": self.script_timeout_ms,
            "module_timeout_ms": self.module_timeout_ms,
            "poll_interval_ms": self.poll_interval_ms,
            "sign_in_timeout_s": self.sign_in_timeout_s,
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def reload_config() -> AppConfig:
    """Reload the configuration from environment variables."""
    global _config
    _config = AppConfig()
    return _config
