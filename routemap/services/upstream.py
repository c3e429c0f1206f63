from typing import Any, Dict

import httpx

from routemap.config import settings
from routemap.utils.retry import retry


def client() -> httpx.AsyncClient:
    """HTTP client for outbound calls to the geocoding and routing backends."""
    return httpx.AsyncClient(
        timeout=settings.HTTP_TIMEOUT,
        headers={"User-Agent": settings.USER_AGENT, "Accept": "application/json"},
    )


@retry(exceptions=(httpx.TransportError,))
async def get(url: str, params: Dict[str, Any]) -> httpx.Response:
    """GET ``url``; only timeouts and connection failures are retried, never HTTP status errors."""
    async with client() as http:
        return await http.get(url, params=params)
