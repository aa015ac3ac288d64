from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rls_api.core.deps import get_scoped_handler
from rls_api.core.errors import OperationFailedError
from rls_api.core.logging import configure_logging, correlation_id_var, user_id_var
from rls_api.core.settings import get_app_settings
from rls_api.db.run_migrations import main as run_alembic
from rls_api.db.seed import seed_all
from rls_api.db.session import dispose_engine, read_current_user_binding
from rls_api.schemas.common import ErrorInfo, ErrorResponse, IdentityEcho, MessageResponse
from rls_api.services.scoped import ScopedRequestHandler

# Routers
from rls_api.api.routes.auth import router as auth_router
from rls_api.api.routes.todos import router as todos_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness and identity-binding probes."},
    {"name": "Auth", "description": "Registration and token endpoints."},
    {"name": "Todos", "description": "The caller's todos, filtered by Row-Level Security."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with a correlation id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    # The identity dependency fills this in once the caller is authenticated.
    token_user = user_id_var.set(None)
    request.state.correlation_id = corr
    request.state.user_id = None

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = corr
        return response
    finally:
        correlation_id_var.reset(token_corr)
        user_id_var.reset(token_user)


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        user_id=getattr(request.state, "user_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    response = JSONResponse(status_code=status_code, content=err.model_dump(mode="json"), headers=headers)
    corr = getattr(request.state, "correlation_id", None)
    if corr:
        response.headers["X-Correlation-ID"] = corr
    return response


@app.exception_handler(OperationFailedError)
async def operation_failed_handler(request: Request, exc: OperationFailedError):
    """
    A scoped data operation failed and was rolled back. The cause is logged by
    the handler and is not exposed to the client.
    """
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="operation_failed",
        message=OperationFailedError.message,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=jsonable_encoder(exc.errors()),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    Failures are logged and the service keeps starting; requests will report
    operation failures until the database is reachable.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            # env.py drives its own event loop, so keep it off this one.
            await asyncio.to_thread(run_alembic, ["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    """Release pooled database connections."""
    await dispose_engine()


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health/identity",
    response_model=IdentityEcho,
    summary="Identity Binding Echo",
    description=(
        "Opens a scoped transaction for the caller and reads app.current_user_id "
        "back from the database to verify the RLS wiring."
    ),
    tags=["Health"],
)
async def identity_echo(
    handler: ScopedRequestHandler = Depends(get_scoped_handler),
) -> IdentityEcho:
    """
    Echo the caller identity next to the value the database sees.

    Returns:
        IdentityEcho: token identity and the transaction-local binding.
    """
    bound = await handler.execute(read_current_user_binding)
    return IdentityEcho(user_id=handler.user_id, bound_user_id=bound)


api_v1.include_router(auth_router)
api_v1.include_router(todos_router)

# Attach api_v1 to app
app.include_router(api_v1)
