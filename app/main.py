"""
Raw Conversion - Main FastAPI Application

Runs the watch services converting downloaded provider documents and
exposes their progress:
- Health of the watch services
- Conversion status per provider
- Blocking wait until everything is converted
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger
import sys

from app.utils.config import get_settings
from app.utils.executor import close_fs_executor
from app.api import health, conversion
from domains.raw_conversion.service import get_conversion_service, close_conversion_service


# Configure logging
settings = get_settings()
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level=settings.log_level
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")

    try:
        get_conversion_service().start()
        logger.success("Watch services started successfully")
    except Exception as e:
        logger.error(f"Failed to start watch services: {e}")
        raise

    yield

    # Cleanup
    logger.info("Shutting down application...")
    close_conversion_service()
    close_fs_executor()
    logger.success("Application shut down complete")


# Create FastAPI app
app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Incremental conversion of raw anime meta data files",
    lifespan=lifespan
)


# Exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.log_level == "DEBUG" else "An error occurred"
        }
    )


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(conversion.router, prefix="/conversion", tags=["Conversion"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Raw Conversion",
        "version": settings.api_version,
        "status": "operational",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )
