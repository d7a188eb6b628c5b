"""Main FastAPI application for the Schema Graph Importer."""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, responses
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.v1.routers import graphs, health
from core.config import settings
from core.logging_config import setup_logging, get_logger
from core.exceptions import (
    SchemaGraphException,
    SourceUnavailableException,
    SchemaParseException,
    IdentifierCollisionException,
    ValidationException,
    StorageException,
    GraphNotFoundException,
    ImportInProgressException,
)
from core.storage import get_mongo_client


# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown."""
    logger.info(f"Starting {settings.app_name} {settings.app_version}")
    logger.info(f"Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"Host: {settings.host}:{settings.port}")

    yield

    logger.info(f"Shutting down {settings.app_name}")
    get_mongo_client().close()
    get_mongo_client.cache_clear()
    logger.info("Cleanup completed")


app = FastAPI(
    title=settings.app_name,
    description="Import SQL dumps and DBML documents into database diagram graphs.",
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_credentials,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    logger.info(
        f"{request.method} {request.url.path} - "
        f"Status: {response.status_code} - "
        f"Time: {process_time:.3f}s"
    )

    return response


def _error(status_code: int, error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "detail": str(exc)})


# Exception handlers. Starlette picks the most specific class, so the base
# handler only sees exceptions without a dedicated one.
@app.exception_handler(SourceUnavailableException)
async def source_unavailable_handler(request: Request, exc: SourceUnavailableException):
    """Handle unreachable or empty schema sources."""
    logger.error(f"Schema source unavailable: {exc}")
    return _error(502, "Schema source unavailable", exc)

@app.exception_handler(SchemaParseException)
async def schema_parse_handler(request: Request, exc: SchemaParseException):
    """Handle malformed SQL dumps and DBML documents."""
    logger.warning(f"Schema parse failed: {exc}")
    return JSONResponse(
        status_code=422,
        content={"error": "Parse failed", "dialect": exc.dialect, "detail": exc.message},
    )

@app.exception_handler(GraphNotFoundException)
async def graph_not_found_handler(request: Request, exc: GraphNotFoundException):
    logger.warning(f"Graph not found: {exc}")
    return _error(404, "Not found", exc)

@app.exception_handler(ImportInProgressException)
async def import_in_progress_handler(request: Request, exc: ImportInProgressException):
    logger.warning(f"Import rejected: {exc}")
    return _error(409, "Import already in progress", exc)

@app.exception_handler(ValidationException)
async def validation_exception_handler(request: Request, exc: ValidationException):
    """Handle validation exceptions."""
    logger.warning(f"Validation exception: {exc}")
    return _error(400, "Bad request", exc)

@app.exception_handler(IdentifierCollisionException)
async def identifier_collision_handler(request: Request, exc: IdentifierCollisionException):
    logger.error(f"Identifier collision: {exc}")
    return _error(500, "Internal server error", exc)

@app.exception_handler(StorageException)
async def storage_exception_handler(request: Request, exc: StorageException):
    """Handle storage exceptions."""
    logger.error(f"Storage exception: {exc}")
    return _error(500, "Internal server error", exc)

@app.exception_handler(SchemaGraphException)
async def schema_graph_exception_handler(request: Request, exc: SchemaGraphException):
    """Handle custom application exceptions."""
    logger.error(f"Schema graph exception: {exc}")
    return _error(500, "Internal server error", exc)

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": "An unexpected error occurred"}
    )

@app.get("/", include_in_schema=False)
async def root():
    return responses.RedirectResponse(url="/docs")

# Include routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(graphs.router, prefix="/api/v1")

if __name__ == "__main__":
    logger.info("Starting application server...")
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )
