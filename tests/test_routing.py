from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi import status

from routemap.core.errors import UpstreamError, UserError
from routemap.schemas.geo import Coordinate, RouteResult
from routemap.services import routing

from tests.conftest import OSRM_ROUTE

START = Coordinate(lat=48.85889, lon=2.32004)
END = Coordinate(lat=52.51704, lon=13.38886)


def test_format_coordinates_uses_lon_lat_order():
    assert routing.format_coordinates([START, END]) == "2.32004,48.85889;13.38886,52.51704"


def test_parse_route_picks_first_route_and_converts_units():
    route = routing.parse_route(OSRM_ROUTE)
    assert route.path == [(48.85889, 2.32004), (50.5, 7.0), (52.51704, 13.38886)]
    assert route.distance_km == 12.35
    assert route.duration_min == 16.45


@pytest.mark.parametrize("payload", [
    {"code": "Ok", "routes": []},
    {"code": "NoRoute", "message": "Impossible route between points"},
])
def test_parse_route_without_candidates_is_empty(payload):
    route = routing.parse_route(payload)
    assert route == RouteResult()
    assert route.is_empty
    assert route.distance_km is None and route.duration_min is None


def test_parse_route_rejects_backend_error_codes():
    with pytest.raises(UpstreamError):
        routing.parse_route({"code": "InvalidQuery", "message": "Query string malformed"})


@pytest.mark.asyncio
async def test_fetch_route_requires_both_endpoints(backend):
    requests = backend(lambda request: httpx.Response(200, json=OSRM_ROUTE))
    with pytest.raises(UserError) as excinfo:
        await routing.fetch_route(START, None)
    assert excinfo.value.message == "Please enter valid source and destination."
    with pytest.raises(UserError):
        await routing.fetch_route(None, END)
    assert requests == []


@pytest.mark.asyncio
async def test_fetch_route_request_shape(backend):
    requests = backend(lambda request: httpx.Response(200, json=OSRM_ROUTE))
    route = await routing.fetch_route(START, END)
    sent = requests[0]
    assert sent.url.path == "/route/v1/driving/2.32004,48.85889;13.38886,52.51704"
    assert sent.url.params["overview"] == "full"
    assert sent.url.params["geometries"] == "geojson"
    assert len(route.path) == 3


@pytest.mark.asyncio
async def test_fetch_route_no_route_status_400(backend):
    backend(lambda request: httpx.Response(400, json={"code": "NoRoute", "message": "No route found"}))
    assert await routing.fetch_route(START, END) == RouteResult()


@pytest.mark.asyncio
async def test_fetch_route_backend_failure(backend):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    requests = backend(handler)
    with pytest.raises(UpstreamError):
        await routing.fetch_route(START, END)
    assert len(requests) == 3


@pytest.mark.asyncio
async def test_route_endpoint(backend, client):
    backend(lambda request: httpx.Response(200, json=OSRM_ROUTE))
    response = await client.get("/api/route?start=48.85889,2.32004&end=52.51704,13.38886")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["distance_km"] == 12.35
    assert body["duration_min"] == 16.45
    assert body["path"][0] == [48.85889, 2.32004]


@pytest.mark.asyncio
@patch('routemap.services.routing.fetch_route', new_callable=AsyncMock)
async def test_route_endpoint_rejects_bad_coordinates(mock_fetch_route, client):
    for query in ["start=48.8,2.3", "start=48.8,2.3&end=north", "start=120,2.3&end=1,1"]:
        response = await client.get(f"/api/route?{query}")
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json() == {"error": "Please enter valid source and destination."}
    mock_fetch_route.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_route_status_error_is_not_retried(backend):
    requests = backend(lambda request: httpx.Response(400, json={"code": "InvalidQuery", "message": "bad"}))
    with pytest.raises(UpstreamError):
        await routing.fetch_route(START, END)
    assert len(requests) == 1
