"""
Merkle Infos Service - Main Entry Point

Provides APIs for storing Merkle trees, validating the stored tree, and
looking up node positions.
"""

import signal
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from prometheus_client import make_asgi_app
from sqlalchemy import text
from starlette.responses import Response

from merkle_infos.api.v1 import node_info_router
from merkle_infos.api.v1 import router as api_v1_router
from merkle_infos.core.config import settings
from merkle_infos.core.logging import setup_logging
from merkle_infos.db import async_session_factory, close_db, init_db
from merkle_infos.db.repository import NodeRepository
from merkle_infos.metrics import get_tree_metrics
from merkle_infos.services.tree_service import TreeService, TreeServiceError

setup_logging()
logger = structlog.get_logger(__name__)

# Scheduler for periodic integrity checks
scheduler = AsyncIOScheduler()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    logger.info(
        "Starting Merkle Infos Service",
        version=settings.VERSION,
        environment=settings.ENV,
        table=settings.MERKLE_TABLE_NAME,
    )

    await init_db()

    if settings.METRICS_ENABLED:
        get_tree_metrics().set_service_info(
            version=settings.VERSION,
            environment=settings.ENV,
            table=settings.MERKLE_TABLE_NAME,
        )

    if settings.SCHEDULER_ENABLED:
        scheduler.add_job(
            run_validation_job,
            "interval",
            minutes=settings.VALIDATION_INTERVAL_MINUTES,
            id="tree_validation",
        )
        scheduler.start()
        logger.info(
            "Scheduler started",
            validation_interval_minutes=settings.VALIDATION_INTERVAL_MINUTES,
        )

    yield

    logger.info("Shutting down Merkle Infos Service")

    if settings.SCHEDULER_ENABLED:
        scheduler.shutdown()

    await close_db()

    logger.info("Merkle Infos Service shutdown complete")


async def run_validation_job() -> None:
    """Validate the stored tree on a schedule."""
    logger.debug("Running scheduled tree validation")

    try:
        async with async_session_factory() as session:
            repository = NodeRepository(
                session,
                table_name=settings.MERKLE_TABLE_NAME,
                page_size=settings.SCAN_PAGE_SIZE,
            )
            metrics = get_tree_metrics() if settings.METRICS_ENABLED else None
            result = await TreeService(repository, metrics=metrics).validate_stored_tree()

            if not result.valid and result.node_count > 0:
                logger.error(
                    "Stored Merkle tree failed integrity check",
                    node_count=result.node_count,
                )

    except TreeServiceError as e:
        logger.error("Scheduled tree validation failed", error=str(e))


def create_application() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="Merkle Infos API",
        description="Merkle tree storage, validation and node position lookup",
        version=settings.VERSION,
        docs_url="/docs" if settings.ENV != "production" else None,
        redoc_url="/redoc" if settings.ENV != "production" else None,
        lifespan=lifespan,
    )

    app.include_router(api_v1_router, prefix="/api/v1")
    app.include_router(node_info_router, tags=["Nodes"])

    if settings.METRICS_ENABLED:
        app.mount("/metrics", make_asgi_app())

    @app.get("/health")
    async def health() -> dict:
        """Overall service health check."""
        return {
            "status": "healthy",
            "service": "merkle-infos",
            "version": settings.VERSION,
            "table": settings.MERKLE_TABLE_NAME,
        }

    @app.get("/ready")
    async def ready() -> Response:
        """Readiness probe; checks database connectivity."""
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
            return Response(status_code=200, content="ready")
        except Exception as e:
            logger.error("Readiness check failed - database unreachable", error=str(e))
            return Response(status_code=503, content="not ready - database unavailable")

    @app.get("/live")
    async def live() -> Response:
        """Liveness probe."""
        return Response(status_code=200, content="alive")

    return app


app = create_application()


def handle_signal(signum: int, frame: object) -> None:
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, initiating shutdown")
    sys.exit(0)


def main() -> None:
    """Run the service."""
    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    logger.info(
        "Starting Merkle Infos service",
        host=settings.HOST,
        port=settings.PORT,
    )

    uvicorn.run(
        "merkle_infos.main:app",
        host=settings.HOST,
        port=settings.PORT,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=False,
    )


if __name__ == "__main__":
    main()
