from fastapi import APIRouter
from structlog import get_logger

from routemap.schemas.search import (
    DeviceLocated,
    DeviceLocationFailed,
    DeviceLocationRequest,
    Search,
    SearchRequest,
    SearchResponse,
    Swap,
    SwapRequest,
)
from routemap.services.workflow import SearchWorkflow

logger = get_logger()
router = APIRouter(prefix="/api", tags=["search"])


def _respond(workflow: SearchWorkflow) -> SearchResponse:
    return SearchResponse(state=workflow.state, error=workflow.state.error)


@router.post("/search", response_model=SearchResponse)
async def search(req: SearchRequest):
    workflow = SearchWorkflow(state=req.state)
    if req.device is not None:
        await workflow.dispatch(DeviceLocated(coordinate=req.device))
    await workflow.dispatch(Search(initial_query=req.initial_query, destination_query=req.destination_query))
    logger.info("Search handled", initial=req.initial_query, destination=req.destination_query,
                phase=workflow.state.phase.value, points=len(workflow.state.route.path))
    return _respond(workflow)


@router.post("/swap", response_model=SearchResponse)
async def swap(req: SwapRequest):
    workflow = SearchWorkflow(state=req.state)
    await workflow.dispatch(Swap())
    return _respond(workflow)


@router.post("/device-location", response_model=SearchResponse)
async def device_location(req: DeviceLocationRequest):
    workflow = SearchWorkflow(state=req.state)
    if req.device is not None:
        await workflow.dispatch(DeviceLocated(coordinate=req.device))
    else:
        await workflow.dispatch(DeviceLocationFailed(reason=req.error or "unknown"))
    return _respond(workflow)
