"""FastAPI application serving behind the decay limiter."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST

from . import __description__, __version__
from .config.settings import ApplicationSettings, LedgerBackend, get_settings
from .engine import AdmissionEngine
from .ledger import RedisLedgerStore, StoreLedger
from .middleware import DecayRateLimitMiddleware, limiter_lifespan
from .observability.logging import setup_logging
from .observability.metrics import AdmissionMetrics

logger = structlog.get_logger()


def build_engine(settings: ApplicationSettings) -> AdmissionEngine:
    """Create the admission engine described by the settings."""
    rate_limit = settings.rate_limit
    metrics = AdmissionMetrics() if settings.observability.metrics_enabled else None

    ledger = None
    if rate_limit.backend == LedgerBackend.REDIS:
        ledger = StoreLedger(
            RedisLedgerStore.from_settings(settings.redis),
            evict_settled=rate_limit.evict_settled,
        )

    return AdmissionEngine(rate_limit.to_options(), ledger=ledger, metrics=metrics)


def create_app(settings: ApplicationSettings | None = None) -> FastAPI:
    """Build the application and tie the decay task to its lifespan."""
    settings = settings or get_settings()
    setup_logging(
        level=settings.observability.log_level,
        format_type=settings.observability.log_format,
    )

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting application",
            environment=settings.environment.value,
            backend=settings.rate_limit.backend.value,
            identity=settings.rate_limit.identity_source,
        )
        async with limiter_lifespan(engine):
            yield
        if isinstance(engine.ledger, StoreLedger) and isinstance(
            engine.ledger.store, RedisLedgerStore
        ):
            await engine.ledger.store.close()
        logger.info("Application stopped")

    app = FastAPI(
        title=settings.app_name,
        description=__description__,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.engine = engine
    app.add_middleware(DecayRateLimitMiddleware, engine=engine)

    @app.get("/")
    async def root() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {
            "status": "healthy",
            "version": __version__,
            "decay_running": engine.running,
            "rate_limit": engine.rate_limit,
        }

    @app.get("/usage/{key}")
    async def usage(key: str) -> dict[str, object]:
        return {
            "key": key,
            "usage": await engine.ledger.get(key),
            "limit": engine.rate_limit,
        }

    if engine.metrics is not None:
        metrics = engine.metrics

        @app.get(settings.observability.metrics_path)
        async def prometheus_metrics() -> PlainTextResponse:
            return PlainTextResponse(metrics.export(), media_type=CONTENT_TYPE_LATEST)

    return app
