"""FastAPI application for the DINO ingestion portal backend."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..exceptions import DinoIngestorError
from ..utils.config import ensure_runtime_configuration, get_settings
from ..utils.logging import setup_logger

logger = setup_logger(__name__, context={"component": "FastAPI"})


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    """Application lifespan context manager for startup/shutdown."""
    # Startup
    ensure_runtime_configuration(get_settings())
    logger.info("DINO ingestion API starting up...")
    yield
    # Shutdown
    logger.info("DINO ingestion API shutting down...")


app = FastAPI(
    title="DINO Ingestion API",
    description="Uploads files to blob storage, reports ingestion metrics and triggers jobs",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(DinoIngestorError)
async def dino_exception_handler(request: Request, exc: DinoIngestorError) -> JSONResponse:
    """Render uncaught domain errors as ``{message, error}`` bodies."""
    correlation_id = request.headers.get("x-correlation-id") or "-"
    logger.error(
        "DinoIngestorError: %s",
        exc,
        extra={"correlation_id": correlation_id, "status": "error"},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc), "error": exc.__class__.__name__},
    )


from .routes import cost, health, jobs, metrics, storage_metrics, upload  # noqa: E402

app.include_router(health.router, tags=["health"])
app.include_router(upload.router, prefix="/api", tags=["ingestion"])
app.include_router(storage_metrics.router, prefix="/api", tags=["ingestion"])
app.include_router(cost.router, prefix="/api", tags=["cost"])
app.include_router(jobs.router, prefix="/api", tags=["jobs"])
app.include_router(metrics.router, tags=["monitoring"])
