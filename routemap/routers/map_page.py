from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse
from structlog import get_logger

from routemap.schemas.geo import Coordinate
from routemap.schemas.search import DeviceLocated, Refresh, Search, SearchState, Swap
from routemap.services.map_view import render_page
from routemap.services.workflow import SearchWorkflow

logger = get_logger()
router = APIRouter(tags=["map"])


def _coordinate(value: Optional[str], name: str) -> Optional[Coordinate]:
    if not value:
        return None
    try:
        return Coordinate.parse(value)
    except ValueError:
        logger.warning("Ignoring malformed coordinate parameter", param=name, value=value)
        return None


@router.get("/", response_class=HTMLResponse)
async def map_page(
    from_: str = Query("", alias="from"),
    to: str = Query(""),
    action: Optional[str] = Query(None, pattern="^(search|swap)$"),
    src: Optional[str] = Query(None, description="Known source coordinate as 'lat,lon'"),
    dst: Optional[str] = Query(None, description="Known destination coordinate as 'lat,lon'"),
    here: Optional[str] = Query(None, description="Device location as 'lat,lon'"),
):
    """Interactive map page; each form submission runs one workflow trigger."""
    state = SearchState.initial()
    state = state.model_copy(update={
        "initial_query": from_,
        "destination_query": to,
        "initial_coords": _coordinate(src, "src") or state.initial_coords,
        "destination_coords": _coordinate(dst, "dst"),
    })
    workflow = SearchWorkflow(state=state)

    device = _coordinate(here, "here")
    if device is not None:
        await workflow.dispatch(DeviceLocated(coordinate=device))

    if action == "search":
        await workflow.dispatch(Search(initial_query=from_, destination_query=to))
    elif action == "swap":
        await workflow.dispatch(Swap())
    else:
        await workflow.dispatch(Refresh())

    return HTMLResponse(content=render_page(workflow.state))
