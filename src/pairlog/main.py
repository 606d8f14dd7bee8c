"""
Main FastAPI application entry point.

This module sets up the FastAPI app with all middleware, routes, and lifecycle events.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import dataset_router, health_router, metrics_router
from .config import Settings, get_settings
from .core.admission import RateLimiter
from .core.dedup import RecentKeyCache
from .core.exceptions import PairLogException
from .core.metrics import MetricsCollector
from .core.pipeline import IngestionPipeline
from .core.writer import AppendLogWriter
from .middleware import AccessLogMiddleware, SecurityHeadersMiddleware


def configure_logging(log_level: str = "INFO", log_format: str = "console") -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # uvicorn's own access log duplicates AccessLogMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    renderer: Any
    processors: List[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()
    processors.append(renderer)

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_lifespan_handler(settings: Settings) -> Any:
    """Create a lifespan handler with access to settings."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Builds the ingestion collaborators, starts the dataset writer and
        drains it on shutdown.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting PairLog service", version=app.version, data_path=str(settings.data_path))

        metrics = MetricsCollector()
        cache = RecentKeyCache(
            max_entries=settings.cache.max,
            ttl_seconds=settings.cache.ttl_seconds,
        )
        rate_limiter = RateLimiter(
            limit=settings.rate_limit.max,
            window_seconds=settings.rate_limit.window_seconds,
        )
        writer = AppendLogWriter(settings.data_path)
        metrics.track_cache(cache)

        app.state.settings = settings
        app.state.metrics = metrics
        app.state.rate_limiter = rate_limiter
        app.state.writer = writer
        app.state.pipeline = IngestionPipeline(
            settings=settings,
            cache=cache,
            writer=writer,
            metrics=metrics,
        )

        await writer.start()

        try:
            logger.info("PairLog service started successfully")
            yield
        finally:
            logger.info("Shutting down, closing dataset writer")
            await writer.stop()
            logger.info("PairLog service shutdown complete", **metrics.snapshot())

    return lifespan


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"error": ...}."""

    @app.exception_handler(PairLogException)
    async def pairlog_exception_handler(request: Request, exc: PairLogException) -> JSONResponse:
        """Handle custom PairLog exceptions."""
        logger = structlog.get_logger(__name__)
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request rejected",
            error=exc.message,
            error_code=exc.error_code,
            status_code=exc.status_code,
            details=exc.details,
            path=request.url.path,
            method=request.method,
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Unknown routes and methods are plain 404s."""
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"error": "Not found"})
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger = structlog.get_logger(__name__)
        logger.error(
            "UncaughtError",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )

        return JSONResponse(
            status_code=500,
            content={"error": "ServerError"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    This factory function ensures all configuration is applied
    whether running via uvicorn or direct execution.
    """
    if settings is None:
        settings = get_settings()

    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="PairLog",
        description="Translation pair ingestion → JSON-lines dataset",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=create_lifespan_handler(settings),
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(AccessLogMiddleware)

    register_exception_handlers(app)

    app.include_router(dataset_router, tags=["dataset"])
    app.include_router(metrics_router, tags=["metrics"])
    app.include_router(health_router, tags=["health"])

    return app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
