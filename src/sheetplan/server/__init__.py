"""Sheet Plan MCP Server."""

import logging

from .main import mcp, get_context

from . import auth_tools
from . import plan_tools

__all__ = ["mcp", "get_context", "main"]


def main():
    """Entry point for the Sheet Plan MCP server."""
    from ..core.config import get_config

    logging.basicConfig(
        level=getattr(logging, get_config().log_level, logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    mcp.run(show_banner=False)
