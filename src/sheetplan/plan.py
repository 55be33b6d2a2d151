"""Financial plans stored as Google spreadsheets."""
import logging
import weakref
from enum import Enum
from typing import Any

from .client.sheets import GoogleSheetsAPI, GoogleSpreadsheet
from .utils.constants import PLAN_TITLE

logger = logging.getLogger(__name__)


class PlanSheet(str, Enum):
    OVERVIEW = "Overview"
    ASSUMPTIONS = "Assumptions"


TEMPLATE: dict[str, Any] = {
    "properties": {
        "title": PLAN_TITLE,
    },
    "sheets": [
        {
            "properties": {
                "title": sheet.value,
                "gridProperties": {
                    "rowCount": 1,
                    "columnCount": 1,
                },
            },
        }
        for sheet in PlanSheet
    ],
}

# Plans still referenced somewhere in the process, by spreadsheet ID. A plan
# is only reused through the Sheets API (and so the user) that loaded it.
_recent_plans: "weakref.WeakValueDictionary[str, Plan]" = weakref.WeakValueDictionary()


class Plan:
    """A financial plan backed by one spreadsheet."""

    @classmethod
    async def create(cls, api: GoogleSheetsAPI) -> "Plan":
        logger.debug("Creating plan")
        spreadsheet = await api.create(TEMPLATE)
        return cls(api, spreadsheet)

    @classmethod
    async def get(cls, api: GoogleSheetsAPI, plan_id: str) -> "Plan":
        """Return the plan with ``plan_id``, reusing one still in memory."""
        plan = _recent_plans.get(plan_id)
        if plan is not None and plan.api is api:
            logger.debug("Loading memoized plan %s", plan_id)
            return plan

        spreadsheet = await api.get(plan_id)
        logger.debug("Loaded spreadsheet %r", spreadsheet)
        return cls(api, spreadsheet)

    def __init__(self, api: GoogleSheetsAPI, sheet: GoogleSpreadsheet) -> None:
        self.api = api
        self._sheet = sheet
        self.id = sheet.id
        _recent_plans[self.id] = self

    @property
    def title(self) -> str:
        return self._sheet.title or PLAN_TITLE

    @property
    def spreadsheet(self) -> GoogleSpreadsheet:
        return self._sheet

    def __repr__(self) -> str:
        return f"Plan({self.id!r})"
