"""
Companion Booking API - Main Application Entry Point

Booking lifecycle core for a companion marketplace:
- Booking state machine with optimistic-concurrency transitions
- Double-booking guard per companion
- Time-boxed chat windows with a grace period
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from companion_booking.core.config import get_settings
from companion_booking.core.exceptions import (
    BookingError,
    InvalidScheduleError,
    NotFoundError,
)
from companion_booking.core.logging import setup_logging, get_logger
from companion_booking.core.metrics import metrics_endpoint
from companion_booking.api.router import api_router
from companion_booking.api.middleware import RequestLoggingMiddleware
from companion_booking.services.cache_service import get_redis, close_redis, get_cache_stats

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging()
    logger = get_logger(__name__)

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        booking_timezone=settings.BOOKING_TIMEZONE,
    )

    redis_client = await get_redis()
    if redis_client:
        logger.info("redis_ready")
    else:
        logger.warning("redis_unavailable", message="Running without cache")

    yield

    await close_redis()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Booking lifecycle and time-boxed chat access for a companion marketplace",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Restrict in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(api_router)


def _status_for(exc: BookingError) -> int:
    if isinstance(exc, InvalidScheduleError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    return 409


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render core errors as {"error": <code>, "detail": <message>, ...}."""
    return JSONResponse(status_code=_status_for(exc), content=exc.to_dict())


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for Docker and load balancers."""
    cache_stats = await get_cache_stats()
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": cache_stats,
    }


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
