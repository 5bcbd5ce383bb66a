"""
Personal CRM API - FastAPI application.
CORS, API versioning (/api/v1), health check, error handling.
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

from app.api.v1.endpoints import auth
from app.api.v1.routes import api_router
from app.core.config import get_settings
from app.core.errors import BackendError, BackendErrorCause, ValidationError
from app.schemas.common import ErrorDetail

# Load settings once at import so CORS list and log level are available to middleware
_settings = get_settings()

# Ensure app logs (including request and data access logs) appear in deploy logs
_log_handler = logging.StreamHandler(sys.stdout)
_log_handler.setFormatter(logging.Formatter("%(levelname)s:     %(message)s"))
_app_logger = logging.getLogger("app")
_app_logger.setLevel(_settings.LOG_LEVEL)
if not _app_logger.handlers:
    _app_logger.addHandler(_log_handler)
logger = logging.getLogger(__name__)

# HTTP status per store failure cause
_CAUSE_STATUS = {
    BackendErrorCause.PERMISSION_DENIED: 403,
    BackendErrorCause.UNAVAILABLE: 503,
    BackendErrorCause.NOT_FOUND: 404,
    BackendErrorCause.CANCELLED: 504,
    BackendErrorCause.UNKNOWN: 502,
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request (method + path) so deploy logs show traffic."""

    async def dispatch(self, request: StarletteRequest, call_next: Callable) -> Response:
        response = await call_next(request)
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response


class PreflightCorsMiddleware(BaseHTTPMiddleware):
    """
    Respond to OPTIONS (preflight) immediately with 200 and CORS headers.
    Some proxies can 502 on OPTIONS if the app doesn't respond fast enough;
    this ensures preflight is handled before any other middleware or routing.
    """

    async def dispatch(self, request: StarletteRequest, call_next: Callable) -> Response:
        if request.method != "OPTIONS":
            return await call_next(request)
        origin = request.headers.get("origin", "").strip()
        allowed = _settings.cors_origins_list
        allow_origin = origin if origin in allowed else (allowed[0] if allowed else "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": allow_origin,
                "Access-Control-Allow-Methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info("Starting Personal CRM API")
    logger.info("CORS_ORIGINS=%s", _settings.cors_origins)
    if _settings.ENVIRONMENT == "production":
        _settings.validate_for_production()
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="Personal CRM API",
    version="1.0.0",
    description="Backend API: contacts and interactions stored in Supabase.",
    lifespan=lifespan,
)

# Request logging
app.add_middleware(RequestLoggingMiddleware)
# CORS: preflight first (runs first), then general CORS for all responses
app.add_middleware(PreflightCorsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Auth routes
app.include_router(
    auth.router,
    prefix="/api/v1/auth",
    tags=["Authentication"],
)


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    logger.info("Validation error while %s: %s", exc.operation, exc.message)
    return JSONResponse(
        status_code=422,
        content=ErrorDetail(detail=exc.message).model_dump(exclude_none=True),
    )


@app.exception_handler(BackendError)
async def handle_backend_error(request: Request, exc: BackendError):
    logger.error("Backend error (%s): %s", exc.cause.value, exc.message)
    return JSONResponse(
        status_code=_CAUSE_STATUS[exc.cause],
        content=ErrorDetail(detail=exc.user_message, cause=exc.cause.value).model_dump(),
    )


# Error handling middleware
@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


# Root and health (outside versioning)
@app.get("/")
def root():
    return {
        "message": "Personal CRM API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "auth": "/api/v1/auth",
            "contacts": "/api/v1/contacts",
            "interactions": "/api/v1/interactions",
            "dashboard": "/api/v1/dashboard",
        },
    }


@app.get("/health")
def health():
    return {"status": "healthy"}


# API v1
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("app.main:app", host="0.0.0.0", port=port)
