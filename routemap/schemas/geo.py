from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, confloat

LatLon = Tuple[float, float]


class Coordinate(BaseModel):
    lat: confloat(ge=-90, le=90)
    lon: confloat(ge=-180, le=180)

    class Config:
        frozen = True

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """Parse ``"lat,lon"``; raises ``ValueError`` on anything else."""
        parts = [p.strip() for p in (text or "").split(",")]
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Expected 'lat,lon', got {text!r}")
        return cls(lat=float(parts[0]), lon=float(parts[1]))

    def as_pair(self) -> LatLon:
        return (self.lat, self.lon)

    def __str__(self) -> str:
        return f"{self.lat},{self.lon}"


class GeocodeItem(BaseModel):
    """Wire shape of one proxy result; coordinates stay decimal strings."""
    lat: str
    lon: str

    @classmethod
    def from_coordinate(cls, coordinate: Coordinate) -> "GeocodeItem":
        return cls(lat=repr(coordinate.lat), lon=repr(coordinate.lon))


class RouteResult(BaseModel):
    path: List[LatLon] = Field(default_factory=list, description="Route geometry as (lat, lon) in traversal order")
    distance_km: Optional[float] = Field(None, ge=0)
    duration_min: Optional[float] = Field(None, ge=0)

    class Config:
        frozen = True

    @property
    def is_empty(self) -> bool:
        return not self.path
