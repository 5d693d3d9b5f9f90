import logging
import time
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from babytrack.api.v1 import api_router
from babytrack.config import settings
from babytrack.core.error_handlers import register_error_handlers
from babytrack.core.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from babytrack.database import async_session_factory, engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Refuse to start with the default secret key in non-debug mode
    if not settings.DEBUG and settings.SECRET_KEY == "change-me-in-production":
        raise RuntimeError(
            "SECRET_KEY is still the default value. "
            "Set a strong SECRET_KEY env var before running in production."
        )
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# --- Middleware (outermost first) ---

app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.DEBUG)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# --- Error handlers ---
register_error_handlers(app)

# --- Routes ---
app.include_router(api_router)


async def _timed(name: str, check) -> dict:
    started = time.monotonic()
    try:
        await check()
    except Exception as exc:
        logger.warning("Health check %s failed: %s", name, exc)
        return {"status": "error", "detail": str(exc)[:200]}
    return {"status": "ok", "latency_ms": round((time.monotonic() - started) * 1000, 1)}


async def _check_database() -> None:
    async with async_session_factory() as session:
        await session.execute(text("SELECT 1"))


async def _check_redis() -> None:
    # Broker for the bookkeeping prune
    client = aioredis.from_url(settings.REDIS_URL, socket_connect_timeout=3)
    try:
        await client.ping()
    finally:
        await client.aclose()


@app.get("/api/health")
async def health_check():
    """Report database and broker reachability; 503 when either is down."""
    components = {
        "database": await _timed("database", _check_database),
        "redis": await _timed("redis", _check_redis),
    }
    healthy = all(c["status"] == "ok" for c in components.values())
    return JSONResponse(
        content={"status": "healthy" if healthy else "degraded", "version": settings.APP_VERSION, **components},
        status_code=200 if healthy else 503,
    )
