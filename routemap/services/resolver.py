from typing import Optional

from structlog import get_logger

from routemap.core.errors import MapError
from routemap.schemas.geo import Coordinate
from routemap.schemas.search import Resolution, Resolved, Unresolved
from routemap.services import geocoding

logger = get_logger()


async def resolve(query: Optional[str], fallback: Optional[Coordinate]) -> Resolution:
    """
    Turn a location query into a coordinate.

    A blank query means "use ``fallback``" (the current location). Geocoding
    failures are reported as Unresolved instead of raised.
    """
    if not (query or "").strip():
        if fallback is None:
            return Unresolved(reason="No location given")
        return Resolved(coordinate=fallback)

    try:
        coordinate = await geocoding.geocode(query)
    except MapError as e:
        logger.info("Location unresolved", query=query, reason=e.message)
        return Unresolved(reason=e.message)
    return Resolved(coordinate=coordinate)
