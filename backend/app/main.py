"""Main FastAPI application."""

import logging
import math
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import get_settings
from app.database import close_db, init_db
from app.errors import AdmissionDenied, UpstreamQueryFailure
from app.routers import health_router, heatmap_router
from app.security.admission import (
    admitted_headers,
    audit_tasks,
    pending_audit_tasks,
    rate_limit_headers,
)
from app.services.rate_limiter import rate_limiter
from app.services.retention import retention_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting PulseMap...")

    # Initialize database
    await init_db()
    logger.info("Database initialized")

    # Start rate limit sweep
    await rate_limiter.start()

    # Start retention service
    await retention_service.start()
    logger.info("Retention service started")

    yield

    # Shutdown
    logger.info("Shutting down PulseMap...")

    await retention_service.stop()
    await rate_limiter.stop()
    await close_db()

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="PulseMap",
    description="Aggregated location density and movement paths for the live map",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    expose_headers=[
        "X-RateLimit-Limit",
        "X-RateLimit-Remaining",
        "X-RateLimit-Reset",
        "Retry-After",
    ],
)


@app.exception_handler(AdmissionDenied)
async def admission_denied_handler(request: Request, exc: AdmissionDenied) -> JSONResponse:
    """Reject over-limit clients with a retry hint."""
    headers = rate_limit_headers(exc.decision)
    headers["Retry-After"] = str(math.ceil(exc.decision.reset_in))
    return JSONResponse(
        status_code=429,
        content={"error": "Too many requests. Please try again later."},
        headers=headers,
        background=audit_tasks(exc.events),
    )


@app.exception_handler(UpstreamQueryFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamQueryFailure) -> JSONResponse:
    """Report location store failures without partial data."""
    logger.error(f"Upstream query failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": str(exc)},
        headers=admitted_headers(request),
        background=pending_audit_tasks(request),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Return a generic 500 body for anything unexpected."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
        headers=admitted_headers(request),
        background=pending_audit_tasks(request),
    )


# Include routers
app.include_router(health_router)
app.include_router(heatmap_router)


@app.get("/")
async def root():
    """Root endpoint - shows API info."""
    return {
        "name": "PulseMap",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
