"""Spreadsheet access through the bootstrapped Google API client."""
import asyncio
import logging
from typing import Any, Optional

from googleapiclient.errors import HttpError

from ..utils.errors import handle_http_error

logger = logging.getLogger(__name__)


class GoogleSpreadsheet:
    """A spreadsheet resource as returned by the Sheets API."""

    def __init__(self, raw: dict[str, Any]) -> None:
        self.raw = raw
        self.id: str = raw["spreadsheetId"]

    @property
    def title(self) -> Optional[str]:
        return self.raw.get("properties", {}).get("title")

    @property
    def sheet_titles(self) -> list[str]:
        return [
            sheet.get("properties", {}).get("title")
            for sheet in self.raw.get("sheets", [])
        ]

    def __repr__(self) -> str:
        return f"GoogleSpreadsheet({self.id!r}, title={self.title!r})"


class GoogleSheetsAPI:
    """Create and fetch spreadsheets; only reachable once the client is loaded."""

    @classmethod
    async def load(cls, api: Any) -> "GoogleSheetsAPI":
        """Build from an initialized library handle."""
        service = await api.client.get_service("sheets")
        return cls(service.spreadsheets())

    def __init__(self, spreadsheets: Any) -> None:
        self._api = spreadsheets

    async def create(self, spreadsheet: dict[str, Any]) -> GoogleSpreadsheet:
        """Create a spreadsheet.

        Args:
            spreadsheet: Spreadsheet resource body (properties, sheets).

        Returns:
            The created spreadsheet.
        """
        logger.debug("Creating spreadsheet %s", spreadsheet.get("properties"))
        try:
            result = await asyncio.to_thread(
                self._api.create(body=spreadsheet).execute
            )
        except HttpError as e:
            raise handle_http_error(e) from e
        logger.debug("Created spreadsheet %s", result.get("spreadsheetId"))

        return GoogleSpreadsheet(result)

    async def get(self, spreadsheet_id: str) -> GoogleSpreadsheet:
        """Fetch a spreadsheet by ID."""
        logger.debug("Fetching spreadsheet %s", spreadsheet_id)
        try:
            result = await asyncio.to_thread(
                self._api.get(spreadsheetId=spreadsheet_id).execute
            )
        except HttpError as e:
            raise handle_http_error(e, spreadsheet_id) from e

        return GoogleSpreadsheet(result)
