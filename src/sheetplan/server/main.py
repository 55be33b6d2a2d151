"""MCP Server initialization and shared helpers."""

from fastmcp import FastMCP

from ..core.context import AppContext, get_app_context

# Initialize MCP Server
mcp = FastMCP("Sheet Plan")


def get_context() -> AppContext:
    """Get the application context the tools operate on.

    Returns:
        The current AppContext; the Google API loads on first use.
    """
    return get_app_context()
