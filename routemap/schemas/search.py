from enum import Enum
from typing import Optional, Tuple, Union

from pydantic import BaseModel, Field

from routemap.config import settings
from routemap.schemas.geo import Coordinate, RouteResult


class Phase(str, Enum):
    idle = "idle"
    resolving = "resolving"
    routing = "routing"
    done = "done"
    failed = "failed"


class SearchState(BaseModel):
    initial_query: str = ""
    destination_query: str = ""
    initial_coords: Optional[Coordinate] = None
    destination_coords: Optional[Coordinate] = None
    route: RouteResult = Field(default_factory=RouteResult)
    # Endpoints the current route was computed for
    routed_between: Optional[Tuple[Coordinate, Coordinate]] = None
    phase: Phase = Phase.idle
    loading: bool = False
    error: Optional[str] = None

    class Config:
        frozen = True

    @classmethod
    def initial(cls) -> "SearchState":
        return cls(initial_coords=Coordinate(lat=settings.DEFAULT_LAT, lon=settings.DEFAULT_LON))

    @property
    def endpoints(self) -> Optional[Tuple[Coordinate, Coordinate]]:
        if self.initial_coords is None or self.destination_coords is None:
            return None
        return (self.initial_coords, self.destination_coords)


# Resolution outcomes

class Resolved(BaseModel):
    coordinate: Coordinate


class Unresolved(BaseModel):
    reason: str = "unresolved"


Resolution = Union[Resolved, Unresolved]


# Workflow commands

class Search(BaseModel):
    initial_query: str = ""
    destination_query: str = ""


class Swap(BaseModel):
    pass


class DeviceLocated(BaseModel):
    coordinate: Coordinate


class DeviceLocationFailed(BaseModel):
    reason: str = "unknown"


class Refresh(BaseModel):
    """Re-run the automatic route refetch without changing any input."""


Command = Union[Search, Swap, DeviceLocated, DeviceLocationFailed, Refresh]


# HTTP payloads

class SearchRequest(BaseModel):
    initial_query: str = ""
    destination_query: str = ""
    state: Optional[SearchState] = None
    device: Optional[Coordinate] = Field(None, description="Current device location, used when initial_query is blank")

    class Config:
        json_schema_extra = {
            "example": {
                "initial_query": "Paris",
                "destination_query": "Berlin",
            }
        }


class SwapRequest(BaseModel):
    state: SearchState


class DeviceLocationRequest(BaseModel):
    state: Optional[SearchState] = None
    device: Optional[Coordinate] = None
    error: Optional[str] = Field(None, description="Browser geolocation error when no device coordinate is available")


class SearchResponse(BaseModel):
    state: SearchState
    error: Optional[str] = None
