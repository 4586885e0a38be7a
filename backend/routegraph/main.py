"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from routegraph import __version__
from routegraph.api import routes
from routegraph.core.config import settings
from routegraph.core.graph import close_graph_store, get_graph_store
from routegraph.core.logging import configure_logging
from routegraph.core.telemetry import get_tracer_provider, shutdown_tracer_provider
from routegraph.errors import GraphStoreError
from routegraph.graph.store import GraphStore
from routegraph.middleware import AccessLoggingMiddleware

# Configure logging at module level so Uvicorn startup logs go through structlog pipeline
configure_logging(log_level=settings.LOG_LEVEL)

logger = structlog.get_logger(__name__)

# TracerProvider is set in lifespan (after fork) for fork-safety


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - initialize OTEL TracerProvider and validate the graph store on startup."""
    if settings.OTEL_ENABLED and (provider := get_tracer_provider()):
        trace.set_tracer_provider(provider)
        logger.info("otel_tracer_provider_initialized")

    # Skip store validation in DEBUG mode (tests override the store)
    if settings.DEBUG:
        logger.info("debug_mode_startup", message="skipping graph store validation")
        yield
        if settings.OTEL_ENABLED:
            shutdown_tracer_provider()
        logger.info("shutdown_complete")
        return

    logger.info("startup_initializing", message="validating graph store")

    try:
        store = get_graph_store()
        await store.verify_connectivity()
        await store.ensure_schema()
    except (GraphStoreError, ValueError) as e:
        logger.error("startup_failed", error=str(e))
        raise

    logger.info("startup_complete", backend=settings.GRAPH_BACKEND)

    yield

    logger.info("shutdown_starting")
    if settings.OTEL_ENABLED:
        shutdown_tracer_provider()
    await close_graph_store()
    logger.info("shutdown_complete")


app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="Routes stored as chains of station edges in a property graph",
    version=__version__,
    lifespan=lifespan,
)

# Instrumentor wraps the ASGI application to create HTTP request spans
if settings.OTEL_ENABLED:
    FastAPIInstrumentor().instrument_app(
        app,
        excluded_urls=",".join(settings.OTEL_EXCLUDED_URLS),
    )
    logger.info("otel_fastapi_instrumented", excluded_urls=settings.OTEL_EXCLUDED_URLS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials="*" not in settings.ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Access logging middleware (replaces uvicorn.access logs with structlog)
app.add_middleware(AccessLoggingMiddleware)

app.include_router(routes.router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": f"{settings.PROJECT_NAME} API", "version": __version__}


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/ready")
async def readiness_check(store: GraphStore = Depends(get_graph_store)) -> dict[str, str]:
    """
    Readiness check endpoint - verify the graph store answers.

    Raises:
        HTTPException: 503 if the graph store cannot be reached
    """
    try:
        await store.verify_connectivity()
    except GraphStoreError as e:
        logger.warning("readiness_check_failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Graph store unavailable") from e
    return {"status": "ready"}
