from typing import List, Optional

from fastapi import APIRouter, Query
from structlog import get_logger

from routemap.core.errors import MapError, UpstreamError
from routemap.schemas.geo import GeocodeItem
from routemap.services import geocoding

logger = get_logger()
router = APIRouter(prefix="/api", tags=["geocode"])


@router.get("/geocode", response_model=List[GeocodeItem])
async def geocode(location: Optional[str] = Query(None, description="Free-text place to look up")):
    """
    Proxy a free-text lookup to the geocoding backend and return its first match.
    Exists so browsers can geocode without running into CORS.
    """
    logger.info("Received location request", location=location)
    try:
        coordinate = await geocoding.geocode(location)
    except MapError:
        raise
    except Exception as e:
        logger.error("Error fetching geocode data", location=location, error=str(e), error_type=type(e).__name__)
        raise UpstreamError() from e
    return [GeocodeItem.from_coordinate(coordinate)]
