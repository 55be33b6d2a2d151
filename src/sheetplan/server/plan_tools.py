"""Plan-related MCP tools."""
from .main import mcp, get_context
from ..plan import Plan, PlanSheet
from ..utils.errors import SheetPlanError, format_error


def _describe_plan(plan: Plan) -> str:
    tabs = ", ".join(title for title in plan.spreadsheet.sheet_titles if title)
    return f"'{plan.title}' (ID: {plan.id}) - tabs: {tabs or 'none'}"


async def _signed_in_sheets():
    context = get_context()
    auth = await context.auth.resolve()
    if not auth.signed_in:
        return None
    return await context.current_sheets()


@mcp.tool()
async def create_plan() -> str:
    """
    Create a new financial plan spreadsheet.

    The plan gets one tab per plan section (Overview, Assumptions).

    Returns:
        Success message with the plan ID.
    """
    try:
        sheets = await _signed_in_sheets()
        if sheets is None:
            return "Create plan failed: please sign in first."
        plan = await Plan.create(sheets)
    except SheetPlanError as e:
        return format_error("Create plan", e)
    except Exception as e:
        return f"Create plan failed: Unexpected error ({type(e).__name__}: {e})"

    return f"Plan created: {_describe_plan(plan)}"


@mcp.tool()
async def open_plan(plan_id: str) -> str:
    """
    Open an existing financial plan.

    Args:
        plan_id: The spreadsheet ID of the plan.

    Returns:
        Plan summary or error message.
    """
    try:
        sheets = await _signed_in_sheets()
        if sheets is None:
            return "Open plan failed: please sign in first."
        plan = await Plan.get(sheets, plan_id)
    except SheetPlanError as e:
        return format_error("Open plan", e)
    except Exception as e:
        return f"Open plan failed: Unexpected error ({type(e).__name__}: {e})"

    missing = [
        sheet.value for sheet in PlanSheet
        if sheet.value not in plan.spreadsheet.sheet_titles
    ]
    summary = f"Plan: {_describe_plan(plan)}"
    if missing:
        summary += f"\nWarning: missing tabs {', '.join(missing)}"
    return summary
