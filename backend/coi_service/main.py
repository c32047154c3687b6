"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from coi_service.api.v1 import coi
from coi_service.core.config import settings
from coi_service.core.logging import get_logger, setup_logging
from coi_service.db.session import close_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle hooks."""
    setup_logging(settings.LOG_LEVEL)
    logger = get_logger("startup")
    logger.info("Application starting", env=settings.APP_ENV, stage=settings.STAGE)
    yield
    await close_client()
    logger.info("Application shutting down")


app = FastAPI(
    title="COI Service",
    description="Certificate of Insurance generation and delivery",
    version="0.1.0",
    lifespan=lifespan,
)

API_PREFIX = "/api/v1"
app.include_router(coi.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Public health-check endpoint."""
    return {"status": "ok", "env": settings.APP_ENV}
