"""Main FastAPI application"""

from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from aquarent.core.config import settings
from aquarent.core.database import init_db, close_db
from aquarent.core.middleware import setup_middleware
from aquarent.core.monitoring import setup_health_endpoints, setup_logging, setup_monitoring_middleware
from aquarent.api.v1 import api_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger.info("Starting up AquaRent API...")

    if settings.ENVIRONMENT != "test":
        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down AquaRent API...")
    await close_db()

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Device rental and franchise operations API",
        version=settings.APP_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan
    )

    setup_middleware(app)
    setup_monitoring_middleware(app)
    setup_health_endpoints(app)

    app.include_router(api_router, prefix="/api/v1")

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "aquarent.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS
    )
