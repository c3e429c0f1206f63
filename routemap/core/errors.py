from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from structlog import get_logger

logger = get_logger()

VALID_ENDPOINTS_MESSAGE = "Please enter valid source and destination."


class MapError(Exception):
    """Base error carrying the HTTP status and the message safe to show to users."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class InputError(MapError):
    status_code = 400
    message = "Location is required"


class NotFoundError(MapError):
    status_code = 404
    message = "No coordinates found"


class UpstreamError(MapError):
    status_code = 500
    message = "Internal server error"


class UserError(MapError):
    status_code = 422
    message = VALID_ENDPOINTS_MESSAGE


async def map_error_handler(request: Request, exc: MapError):
    logger.info("Request failed", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(MapError, map_error_handler)
