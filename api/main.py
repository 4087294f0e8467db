"""
api/main.py -- FastAPI application entry point for Digital Library.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. CORSMiddleware        -- adds CORS headers for the origins in CORS_ORIGINS
  2. log_requests          -- one log line per request with status and latency

Lifespan builds every long-lived object once at startup and places it on
app.state: the account and book stores, the TokenService (signing key is fixed
from here on), and the two services route handlers call. Shutdown disposes the
store engines.
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
from api.routes.v1.account import router as account_router
from api.routes.v1.auth import router as auth_router
from api.routes.v1.books import router as books_router
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import TokenService
from core.config import get_settings
from core.errors import LibraryError, Unauthenticated
from library.service import BookService
from library.store import BookStore

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("digitallibrary.api")


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


def wire_services(
    app: FastAPI,
    account_store: AccountStore,
    book_store: BookStore,
    tokens: TokenService,
    password_min_length: int,
) -> None:
    """Attach stores, token service, and services to app.state.

    Shared by the real lifespan and the test lifespan so both wire the app
    identically.
    """
    app.state.account_store = account_store
    app.state.book_store = book_store
    app.state.token_service = tokens
    app.state.account_service = AccountService(
        account_store,
        tokens,
        password_min_length=password_min_length,
        purge_owned=book_store.delete_by_owner,
    )
    app.state.book_service = BookService(book_store)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Settings are first loaded when this module is imported (CORS origins), so
    a production deployment missing SECRET_KEY, JWT_ISSUER or JWT_AUDIENCE
    fails before the server accepts a single request.
    """
    settings = get_settings()
    logger.info("Digital Library API starting up (debug=%s)", settings.debug)
    wire_services(
        app,
        AccountStore(settings.database_url),
        BookStore(settings.database_url),
        TokenService.from_settings(settings),
        settings.password_min_length,
    )
    logger.info("Stores initialized; token expiry %d minutes", settings.token_expire_minutes)

    yield

    app.state.account_store.close()
    app.state.book_store.close()
    logger.info("Digital Library API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Digital Library API",
    description="Personal library tracker: accounts, bearer-token auth, and a private book collection per account.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
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

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(account_router, prefix="/api/v1", tags=["Account"])
app.include_router(books_router, prefix="/api/v1", tags=["Books"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


@app.exception_handler(LibraryError)
async def library_error_handler(request: Request, exc: LibraryError) -> JSONResponse:
    """Map a domain error onto its status code and the shared envelope.

    Only code and message are serialized. Internal attributes such as
    InvalidCredentials.reason never reach the client.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(),
    )
    if isinstance(exc, Unauthenticated):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or query params fail validation."""
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
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it -- str(dict) produces a Python repr,
    not JSON.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    The client receives only a generic message.
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
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness and current version; status is "degraded" if the database is unreachable."""
    try:
        request.app.state.account_store.ping()
        status = "ok"
    except Exception:
        logger.exception("Health check database ping failed")
        status = "degraded"
    return HealthResponse(status=status, version=API_VERSION)
