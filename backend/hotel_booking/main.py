"""
Hotel Booking Engine - Main Application Entry Point

Room inventory and reservations for a single hotel:
- Availability search over half-open stay windows
- Double-booking-safe reservations with room row locks
- Reservation lifecycle with cancellation and edit windows
- Redis caching of the room catalog
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotel_booking.api.deps import get_room_cache
from hotel_booking.api.middleware import RequestLoggingMiddleware
from hotel_booking.api.router import api_router
from hotel_booking.core.config import get_settings
from hotel_booking.core.exceptions import BookingError
from hotel_booking.core.logging import get_logger, setup_logging
from hotel_booking.core.metrics import metrics_endpoint
from hotel_booking.db.session import Database
from hotel_booking.services.cache_service import RoomCache
from hotel_booking.services.notification_service import build_notifier

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: owns the database, cache and notifier."""
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    database = Database.from_settings(settings)
    if settings.ENVIRONMENT == "development" and database.dialect_name == "sqlite":
        # local runs without alembic
        await database.create_all()
    app.state.database = database

    app.state.room_cache = await RoomCache.connect(settings)
    if not app.state.room_cache.enabled:
        logger.warning("redis_unavailable", message="Running without cache")

    app.state.notifier = build_notifier(settings)

    yield

    await app.state.notifier.close()
    await app.state.room_cache.close()
    await database.close()
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Hotel room inventory and reservation API with double-booking protection",
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


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("booking_error", kind=exc.kind, status_code=exc.status_code, detail=exc.message, **exc.context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint for Docker and load balancers."""
    cache: RoomCache = get_room_cache(request)
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "cache": await cache.stats(),
    }


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics():
    return metrics_endpoint()


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
