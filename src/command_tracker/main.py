"""Main FastAPI application for Command Tracker."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .api.routes import router as api_router
from .config import Settings, get_settings
from .database.store import RecordStore
from .exceptions import StoreError
from .observability.logging import configure_logging, set_log_context
from .preferences import PreferencesStore
from .tracking.ingestion import IngestionEngine
from .tracking.retention import RetentionPolicy

logger = logging.getLogger(__name__)


async def teardown_store(store: RecordStore, protect_data: bool) -> None:
    """Close the store when data is protected, otherwise delete it."""
    if protect_data:
        await store.close()
        logger.info("Store closed; data kept")
    else:
        await store.destroy()
        logger.info("Store destroyed; data protection is off")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    settings: Settings = app.state.settings

    configure_logging(
        environment=settings.environment,
        log_level="DEBUG" if settings.debug else settings.log_level,
    )
    set_log_context(installation_id=settings.installation_id)

    preferences = PreferencesStore(settings.data_dir)
    preferences.load()
    app.state.preferences = preferences

    store = RecordStore(settings.installation_id, settings.data_dir)
    await store.open()
    app.state.store = store

    app.state.ingestion_engine = IngestionEngine(
        store,
        retention=RetentionPolicy(
            max_records=settings.max_records,
            retention_days=settings.retention_days,
        ),
        tracking_enabled=preferences.tracking_enabled,
    )

    logger.info("%s v%s started", settings.app_name, settings.app_version)
    logger.info("Environment: %s", settings.environment)
    logger.info("Store: %s", store.path)

    yield

    # Shutdown
    logger.info("Shutting down Command Tracker...")
    try:
        await teardown_store(store, preferences.current.protect_data_on_teardown)
    except StoreError:
        logger.exception("Failed to tear down store")
    logger.info("Command Tracker shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Command invocation tracker with per-command and per-day usage views",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.settings = settings

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.warning("Store error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        store = getattr(request.app.state, "store", None)
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "store": store.state.value if store else "closed",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # Prometheus metrics endpoint
    if settings.enable_metrics:
        @app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from .observability.metrics import generate_metrics_text
            return PlainTextResponse(
                generate_metrics_text(),
                media_type="text/plain; version=0.0.4; charset=utf-8",
            )

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "command_tracker.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
