"""
api/main.py -- FastAPI application entry point for the Account API.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware  -- adds CORS headers for allowed browser origins
  2. log_requests    -- one access-log line per request with latency

Lifespan builds the user store from Settings and closes it on shutdown. The
store reaches routes through app.state.user_store; nothing holds a global
database handle.

Error translation: route and auth code raise core.errors.AppError. This is the
only module that maps an ErrorKind to an HTTP status and client message.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import AppError, ErrorKind

API_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("accountapi.api")

# ---------------------------------------------------------------------------
# ErrorKind -> (status, code, message)
#
# The three 401 kinds share a code so clients cannot tell which half of a
# credential check failed. Messages for NOT_FOUND / CONFLICT come from the
# raising route.
# ---------------------------------------------------------------------------

_ERROR_MAP: dict[ErrorKind, tuple[int, str, str]] = {
    ErrorKind.INVALID_REQUEST: (422, "validation_error", "Request validation failed."),
    ErrorKind.INVALID_CREDENTIALS: (401, "unauthorized", "Invalid username or password."),
    ErrorKind.TOKEN_MISSING: (401, "unauthorized", "Authentication required."),
    ErrorKind.TOKEN_INVALID: (401, "unauthorized", "Invalid or expired token."),
    ErrorKind.NOT_FOUND: (404, "not_found", "Resource not found."),
    ErrorKind.CONFLICT: (409, "conflict", "Resource already exists."),
    ErrorKind.NO_CHANGES: (400, "no_changes", "No fields to update."),
    ErrorKind.SIGNING_FAILURE: (500, "internal_error", "An unexpected error occurred."),
}

_CLIENT_MESSAGE_KINDS = frozenset({ErrorKind.NOT_FOUND, ErrorKind.CONFLICT})


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the user store on startup and dispose of it on shutdown."""
    settings = get_settings()
    logger.info("Account API starting up")
    app.state.user_store = UserStore(settings.database_url)
    logger.info("User store initialized")

    yield

    app.state.user_store.close()
    logger.info("Account API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Account API",
    description="User account management with password login and signed bearer tokens.",
    version=API_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


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
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate an ErrorKind into its status code and client-facing message.

    401 responses carry WWW-Authenticate and no-store regardless of which auth
    kind produced them.
    """
    status_code, code, message = _ERROR_MAP[exc.kind]
    if exc.kind in _CLIENT_MESSAGE_KINDS and exc.message:
        message = exc.message
    if status_code >= 500:
        logger.error("%s on %s %s", exc.kind.value, request.method, request.url.path)
    response = _error_response(status_code, code, message)
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
        response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with structured error when request body or path params fail validation.

    The raw input is dropped from each error entry so a rejected password is
    never reflected back to the client.
    """
    status_code, code, message = _ERROR_MAP[ErrorKind.INVALID_REQUEST]
    errors = [{"loc": e.get("loc"), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
    return _error_response(status_code, code, message, str(errors))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured errors for framework-raised HTTP errors (unknown route, bad method)."""
    return _error_response(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No auth -- load balancers call it.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    db_ok = request.app.state.user_store.ping()
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=API_VERSION,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
