import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
# This is needed for relationships between models in different files
from . import (
    models,  # noqa: F401
    models_booking,  # noqa: F401
)
from .config import FRONTEND_URL
from .database import Base, engine
from .domain.rooms.router import admin_router as rooms_admin_router
from .domain.rooms.router import router as rooms_router
from .domain.scheduling.errors import BookingError
from .domain.scheduling.router import admin_router as bookings_admin_router
from .domain.scheduling.router import router as bookings_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    from .rate_limiter import get_redis_client

    if get_redis_client() is not None:
        logger.info("Redis connection established")
    else:
        logger.warning("Redis not available - rate limiting counts in process memory only")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Meeting Room Booking API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(BookingError)
async def booking_exception_handler(request: Request, exc: BookingError):
    """Map typed scheduling failures to their HTTP status and a stable error code"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} - {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"success": False, "error": "VALIDATION_ERROR", "detail": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Validation errors without the raw ``ctx``/``input`` values, which may not serialise"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"{request.method} {request.url.path} - Error: {str(e)}")
        raise
    duration_ms = (time.time() - start_time) * 1000
    if duration_ms > 1000:
        logger.warning(f"🐌 {request.method} {request.url.path} took {duration_ms:.0f}ms")
    return response


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:5173",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Routes
# Booking routes first: /admin/meeting-rooms/bookings must not be taken as a room id
app.include_router(bookings_router)
app.include_router(bookings_admin_router)
app.include_router(rooms_router)
app.include_router(rooms_admin_router)


@app.get("/")
def root():
    return {"message": "Meeting Room Booking API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/redis")
async def redis_health_check():
    """Rate limiter backend status; "memory" means counts are per process"""
    import redis

    from .rate_limiter import get_redis_client, memory_cache

    redis_client = get_redis_client()
    if redis_client is None:
        return {
            "status": "degraded",
            "rateLimiter": {"mode": "memory", "trackedKeys": len(memory_cache)},
            "redis": {"connected": False, "error": "Redis not configured or unreachable"},
        }

    try:
        start_time = time.time()
        redis_client.ping()
        latency_ms = round((time.time() - start_time) * 1000, 2)
        version = redis_client.info("server").get("redis_version", "unknown")
    except redis.RedisError as e:
        logger.warning(f"⚠️ Redis health check failed: {e}")
        return {
            "status": "unhealthy",
            "rateLimiter": {"mode": "memory", "trackedKeys": len(memory_cache)},
            "redis": {"connected": False, "error": str(e)},
        }

    return {
        "status": "healthy",
        "rateLimiter": {"mode": "redis", "trackedKeys": len(memory_cache)},
        "redis": {"connected": True, "latencyMs": latency_ms, "version": version},
    }
