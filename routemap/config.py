from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 5000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]
    # Nominatim geocoding and OSRM routing backends
    GEOCODE_API_BASE: str = "https://nominatim.openstreetmap.org"
    ROUTING_API_BASE: str = "https://router.project-osrm.org"
    ROUTING_PROFILE: str = "driving"
    USER_AGENT: str = "routemap/0.1 (+https://github.com/routemap/routemap)"
    HTTP_TIMEOUT: float = 10.0
    RETRY_TRIES: int = 3
    RETRY_DELAY: float = 0.5
    RETRY_BACKOFF: float = 2.0
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_ENABLED: bool = True
    GEOCODE_CACHE_TTL: int = 3600
    ROUTE_CACHE_TTL: int = 600
    # Initial coordinate used until the device location is known
    DEFAULT_LAT: float = 0.0
    DEFAULT_LON: float = 0.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
