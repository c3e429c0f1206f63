from typing import Optional

from fastapi import APIRouter, Query
from structlog import get_logger

from routemap.core.errors import UserError
from routemap.schemas.geo import Coordinate, RouteResult
from routemap.services import routing

logger = get_logger()
router = APIRouter(prefix="/api", tags=["route"])


def _parse(value: Optional[str]) -> Coordinate:
    try:
        return Coordinate.parse(value)
    except ValueError:
        raise UserError()


@router.get("/route", response_model=RouteResult)
async def route(
    start: Optional[str] = Query(None, description="Start as 'lat,lon'"),
    end: Optional[str] = Query(None, description="End as 'lat,lon'"),
):
    start_coords = _parse(start)
    end_coords = _parse(end)
    return await routing.fetch_route(start_coords, end_coords)
