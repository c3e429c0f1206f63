import os

# No Redis and no retry back-off while testing
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("RETRY_DELAY", "0")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from routemap.main import app
from routemap.services import upstream

PARIS = {"lat": "48.8588897", "lon": "2.3200410", "display_name": "Paris, France"}
BERLIN = {"lat": "52.5170365", "lon": "13.3888599", "display_name": "Berlin, Germany"}

OSRM_ROUTE = {
    "code": "Ok",
    "routes": [
        {
            "geometry": {"type": "LineString", "coordinates": [[2.32004, 48.85889], [7.0, 50.5], [13.38886, 52.51704]]},
            "distance": 12345,
            "duration": 987,
        },
        {
            "geometry": {"type": "LineString", "coordinates": [[2.32004, 48.85889], [13.38886, 52.51704]]},
            "distance": 99999,
            "duration": 9999,
        },
    ],
    "waypoints": [],
}


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def backend(monkeypatch):
    """Route outbound backend calls to a handler; returns the list of requests seen."""
    requests = []

    def install(handler):
        def recording(request: httpx.Request):
            requests.append(request)
            return handler(request)

        monkeypatch.setattr(upstream, "client", lambda: httpx.AsyncClient(transport=httpx.MockTransport(recording)))
        return requests

    return install


def fake_backend(places=None, route=OSRM_ROUTE):
    """Deterministic geocoding + routing backend keyed on the query text."""
    places = places if places is not None else {"paris": [PARIS], "berlin": [BERLIN]}

    def handler(request: httpx.Request):
        if request.url.path == "/search":
            return httpx.Response(200, json=places.get(request.url.params["q"].lower(), []))
        if request.url.path.startswith("/route/v1/"):
            return httpx.Response(200, json=route)
        return httpx.Response(404, text="unknown path")

    return handler
