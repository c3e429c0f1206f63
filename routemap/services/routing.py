from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import httpx
from structlog import get_logger

from routemap.config import settings
from routemap.core.errors import UpstreamError, UserError
from routemap.schemas.geo import Coordinate, RouteResult
from routemap.services import cache, upstream

logger = get_logger()

# OSRM answers these in-band when the request was fine but no route exists
NO_ROUTE_CODES = {"NoRoute", "NoSegment"}


def format_coordinates(coords: List[Coordinate]) -> str:
    """Convert (lat, lon) coordinates to the OSRM 'lon,lat;lon,lat' form."""
    return ";".join(f"{c.lon},{c.lat}" for c in coords)


def _round2(value: Any, divisor: int) -> float:
    quantized = (Decimal(str(value)) / divisor).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(quantized)


async def request_route(coords_param: str) -> Dict[str, Any]:
    url = f"{settings.ROUTING_API_BASE}/route/v1/{settings.ROUTING_PROFILE}/{coords_param}"
    try:
        response = await upstream.get(url, {"overview": "full", "geometries": "geojson"})
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("code") in NO_ROUTE_CODES:
            return data
        response.raise_for_status()
    except httpx.TimeoutException as e:
        logger.error("Routing backend timed out", coords=coords_param, error=str(e))
        raise UpstreamError() from e
    except httpx.HTTPStatusError as e:
        logger.error("Routing backend error", coords=coords_param, status=e.response.status_code, text=e.response.text)
        raise UpstreamError() from e
    except httpx.RequestError as e:
        logger.error("Routing backend unreachable", coords=coords_param, error=str(e))
        raise UpstreamError() from e

    if not isinstance(data, dict):
        logger.error("Routing backend returned invalid JSON", coords=coords_param)
        raise UpstreamError()
    return data


def parse_route(data: Dict[str, Any]) -> RouteResult:
    """
    Take the first (backend-preferred) route from an OSRM response.

    Geometry is flipped from [lon, lat] to (lat, lon); distance is reported in
    kilometres and duration in minutes, both to two decimals.
    """
    code = data.get("code", "Ok")
    if code in NO_ROUTE_CODES:
        return RouteResult()
    if code != "Ok":
        logger.error("Routing backend rejected request", code=code, message=data.get("message"))
        raise UpstreamError()

    routes = data.get("routes") or []
    if not routes:
        return RouteResult()

    best = routes[0]
    try:
        path = [(float(lat), float(lon)) for lon, lat in best["geometry"]["coordinates"]]
        return RouteResult(
            path=path,
            distance_km=_round2(best["distance"], 1000),
            duration_min=_round2(best["duration"], 60),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error("Malformed route payload", error=str(e))
        raise UpstreamError() from e


async def fetch_route(start: Optional[Coordinate], end: Optional[Coordinate]) -> RouteResult:
    if start is None or end is None:
        raise UserError()

    coords_param = format_coordinates([start, end])
    cache_key = f"route:{settings.ROUTING_PROFILE}:{coords_param}"
    cached = await cache.get_json(cache_key)
    if cached:
        return RouteResult(**cached)

    route = parse_route(await request_route(coords_param))
    logger.info("Route computed", start=str(start), end=str(end), points=len(route.path),
                distance_km=route.distance_km, duration_min=route.duration_min)
    if not route.is_empty:
        await cache.set_json(cache_key, settings.ROUTE_CACHE_TTL, route.model_dump())
    return route
