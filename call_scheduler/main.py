"""
Application factory.

    uvicorn --factory call_scheduler.main:create_app

Nothing is built at import time: settings, engine and Redis client come to
life only when create_app runs.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis import Redis
from redis.exceptions import RedisError

from .audit import AuditLogger
from .config import Settings, get_settings
from .database import build_engine, build_session_factory
from .events.booking_consumer import booking_consumer_loop
from .exceptions import BookingError, RateLimitError
from .middleware.audit import audit_middleware
from .middleware.rate_limit import SlidingWindowRateLimiter, rate_limit_middleware
from .redis_client import build_redis
from .routers import admin, availability, bookings, consultants
from .services.cache import RedisCache
from .services.events import EventEmitter
from .services.notifications import EmailNotifier
from .services.slots.config import BookingConfig
from .services.webhook import WebhookSender

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    consumer_task = None

    if settings.events_consumer_enabled:
        consumer_task = asyncio.create_task(booking_consumer_loop(
            settings.redis_url,
            EmailNotifier(settings),
            WebhookSender(settings),
        ))
    logger.info("Call scheduler started")

    yield

    if consumer_task is not None:
        consumer_task.cancel()
        try:
            await consumer_task
        except asyncio.CancelledError:
            pass
    app.state.engine.dispose()
    logger.info("Call scheduler stopped")


def create_app(settings: Settings | None = None, redis_client: Redis | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Call Scheduler API", lifespan=lifespan)

    engine = build_engine(settings.resolved_database_url)
    redis = redis_client if redis_client is not None else build_redis(settings)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.redis = redis
    app.state.booking_config = BookingConfig.from_settings(settings)
    app.state.cache = RedisCache(redis, default_ttl=settings.cache_ttl)
    app.state.events = EventEmitter(redis)
    app.state.audit = AuditLogger(settings)
    app.state.rate_limiter = SlidingWindowRateLimiter(redis, window=settings.rate_limit_window)

    # ===== Middleware order: last registered runs first =====
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(audit_middleware)
    if settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-CS-Token"],
            expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
        )

    # ===== Error rendering =====
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        headers = None
        if isinstance(exc, RateLimitError):
            headers = {"Retry-After": str(exc.retry_after)}
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        return JSONResponse(
            status_code=400,
            content={
                "code": "invalid_input",
                "message": f"Invalid input: {', '.join(fields)}" if fields else "Invalid input.",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={"code": "server_error", "message": "An unexpected error occurred."},
        )

    app.include_router(availability.router)
    app.include_router(bookings.router)
    app.include_router(consultants.router)
    app.include_router(admin.router)

    @app.get("/health")
    def health():
        try:
            redis_ok = bool(app.state.redis.ping())
        except RedisError:
            redis_ok = False
        return {"status": "ok", "redis": redis_ok}

    return app



if __name__ == "__main__":
    import uvicorn
    uvicorn.run("call_scheduler.main:create_app", factory=True, host="0.0.0.0", port=8000)
