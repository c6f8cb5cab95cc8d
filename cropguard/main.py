"""FastAPI application entrypoint: lifespan, routers and middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from cropguard.config import get_settings
from cropguard.data.regulations import get_reference_data
from cropguard.middleware.logging import (
    RequestLoggingMiddleware,
    configure_structured_logging,
    get_logger,
)
from cropguard.repositories.memory import InMemoryStore
from cropguard.routes import analytics, bbch, calculations, mixing, plans, recommendations, risk

VERSION = "0.1.0"

logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Load reference tables (fails fast on an invalid override file)
      3. Connect the Redis analytics cache when ``redis_url`` is set
      4. Open the repository store

    Shutdown:
      1. Close the repository store
      2. Close the Redis connection
    """
    settings = get_settings()
    configure_structured_logging(settings)
    logger.info("cropguard_starting", log_level=settings.log_level, log_format=settings.log_format.value)

    redis: Redis | None = None
    try:
        reference = get_reference_data()
        if settings.redis_url:
            redis = Redis.from_url(settings.redis_url, decode_responses=True)
            await redis.ping()
        app.state.redis = redis
        app.state.store.initialize()
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        if redis is not None:
            await redis.aclose()
        raise
    logger.info(
        "reference_data_loaded",
        resistance_thresholds=len(reference.resistance_thresholds),
        quarantine_restrictions=len(reference.quarantine_restrictions),
        analytics_cache="redis" if redis is not None else "disabled",
    )

    yield

    logger.info("cropguard_shutting_down")
    app.state.store.close()
    if redis is not None:
        await redis.aclose()
    app.state.redis = None


def create_app(store: InMemoryStore | None = None) -> FastAPI:
    application = FastAPI(
        title="CropGuard API",
        description=(
            "Crop-protection decision engine: dosage adjustment, product "
            "recommendation, tank-mix compatibility, resistance and warning "
            "analysis, and per-field treatment scheduling."
        ),
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    application.state.store = store if store is not None else InMemoryStore(initialized=False)
    application.state.redis = None

    # ── Middleware ──────────────────────────────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestLoggingMiddleware)

    # ── Health check ────────────────────────────────────────────────────────
    @application.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Basic health check, verifies the API process is alive."""
        return {
            "status": "ok",
            "service": "cropguard",
            "version": VERSION,
        }

    # ── Router registration ─────────────────────────────────────────────────
    for module in (calculations, mixing, recommendations, risk, plans, analytics, bbch):
        application.include_router(module.router, prefix="/api/v1")

    return application


app = create_app()
