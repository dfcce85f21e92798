"""
api/main.py -- FastAPI application entry point for socialgraph.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one access-log line per request with latency

Lifespan builds the process-wide collaborators once (settings, repository and
token codec) and hangs them on app.state. The GraphQL schema is built at
import time in graph/schema.py. Resolvers reach the collaborators only through
auth/dependencies.get_request_context().
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.graph import router as graph_router
from auth.tokens import TokenCodec
from core.config import get_settings
from graph.schema import protected_operations
from social.store import SocialStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("socialgraph.api")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared resources on startup and release them on shutdown.

    Settings are read once here and passed by reference into the token codec
    and the repository; nothing below this layer reads the environment.
    """
    logger.info("socialgraph API starting up")
    settings = get_settings()
    app.state.settings = settings
    app.state.store = SocialStore(settings.database_url)
    app.state.tokens = TokenCodec(settings.secret_key, settings.token_expire_seconds)
    logger.info("GraphQL schema loaded (%d protected operations)", len(protected_operations()))

    yield

    app.state.store.close()
    logger.info("socialgraph API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="socialgraph API",
    description="Users, follows, posts, likes and comments behind a graph-shaped query endpoint.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(graph_router, prefix="/api/v1", tags=["Graph"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# transport-level errors uniformly. Domain errors never reach these handlers:
# strawberry reports them inside the GraphQL response.
# ---------------------------------------------------------------------------


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when the request body fails validation."""
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(
            error=ErrorDetail(
                code="validation_error",
                message="Request validation failed.",
                detail=str(exc.errors()),
            )
        ).model_dump(),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions."""
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(),
    )


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability. No auth."""
    database = "ok" if request.app.state.store.ping() else "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
