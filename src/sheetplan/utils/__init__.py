"""Shared helpers: asyncio primitives, constants and errors."""
