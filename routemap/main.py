import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from structlog import get_logger

from routemap.config import settings
from routemap.core.errors import register_error_handlers
from routemap.core.logging import setup_logging
from routemap.routers import geocode, health, map_page, route, search

logger = get_logger()

app = FastAPI(title="Route Map")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)
app.include_router(geocode.router)
app.include_router(route.router)
app.include_router(search.router)
app.include_router(map_page.router)
app.include_router(health.router)

@app.on_event("startup")
async def startup_event():
    setup_logging()
    logger.info("Server starting", port=settings.PORT)


def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
