"""
FastAPI entrypoint for the travel back office settlement API.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backoffice.core.config import settings
from backoffice.core.errors import BackofficeError, backoffice_error_handler, server_error_handler
from backoffice.core.logging import setup_logging
from backoffice.api.router import api_router

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup - launch the daily FX refresh
    scheduler = None
    if settings.SCHEDULER_ENABLED:
        from backoffice.core.scheduler import create_scheduler

        scheduler = create_scheduler()
        scheduler.start()
        logger.info(f"Background scheduler started (FX refresh at {settings.FX_REFRESH_HOUR_UTC:02d}:00 UTC)")

    yield

    # Shutdown
    if scheduler:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Multi-currency settlement API for a travel back office",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(BackofficeError, backoffice_error_handler)
app.add_exception_handler(Exception, server_error_handler)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": f"{settings.APP_NAME} API is running"}


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
