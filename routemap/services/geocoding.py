from typing import Any, Dict, List, Optional

import httpx
from structlog import get_logger

from routemap.config import settings
from routemap.core.errors import InputError, NotFoundError, UpstreamError
from routemap.schemas.geo import Coordinate
from routemap.services import cache, upstream

logger = get_logger()


def _cache_key(query: str) -> str:
    return f"geocode:{' '.join(query.lower().split())}"


async def search_places(query: str) -> List[Dict[str, Any]]:
    """
    Query the Nominatim /search endpoint with a free-form ``query``.
    Returns the raw list of candidates; every transport or payload problem
    is raised as UpstreamError.
    """
    url = f"{settings.GEOCODE_API_BASE}/search"
    try:
        response = await upstream.get(url, {"format": "json", "q": query})
        response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException as e:
        logger.error("Geocode backend timed out", query=query, error=str(e))
        raise UpstreamError() from e
    except httpx.HTTPStatusError as e:
        logger.error("Geocode backend error", query=query, status=e.response.status_code, text=e.response.text)
        raise UpstreamError() from e
    except httpx.RequestError as e:
        logger.error("Geocode backend unreachable", query=query, error=str(e))
        raise UpstreamError() from e
    except ValueError as e:
        logger.error("Geocode backend returned invalid JSON", query=query, error=str(e))
        raise UpstreamError() from e

    logger.info("Geocode backend response", query=query, payload=data)
    if not isinstance(data, list):
        logger.error("Unexpected geocode payload", query=query, payload_type=type(data).__name__)
        raise UpstreamError()
    return data


async def geocode(location: Optional[str]) -> Coordinate:
    """Resolve ``location`` to the coordinate of the first backend match."""
    query = (location or "").strip()
    if not query:
        raise InputError()

    cache_key = _cache_key(query)
    cached = await cache.get_json(cache_key)
    if cached:
        return Coordinate(**cached)

    matches = await search_places(query)
    if not matches:
        raise NotFoundError()

    first = matches[0]
    try:
        coordinate = Coordinate(lat=float(first["lat"]), lon=float(first["lon"]))
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Malformed geocode match", query=query, match=first, error=str(e))
        raise UpstreamError() from e

    await cache.set_json(cache_key, settings.GEOCODE_CACHE_TTL, coordinate.model_dump())
    return coordinate
