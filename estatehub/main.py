"""
EstateHub - real-estate listing API

FastAPI application factory with security hardening.

Run with:
    uvicorn estatehub.main:create_app --factory
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from estatehub import __version__
from estatehub.api.v1.api import api_router
from estatehub.auth.jwt import TokenService
from estatehub.core.config import Settings, get_settings
from estatehub.core.database import Database
from estatehub.core.exceptions import AppError, ValidationFailed
from estatehub.core.logging import configure_logging
from estatehub.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# Security Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # HTTPS only
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for tracing."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


# =============================================================================
# Error Handlers
# =============================================================================

def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _error_response(request: Request, status_code: int, message: str, errors=None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors, request_id=_request_id(request))
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def app_error_handler(request: Request, exc: AppError):
    return _error_response(request, exc.status_code, exc.message, exc.errors)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report every failing field in one 400 response."""
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"][1:]) or str(err["loc"][0]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return await app_error_handler(request, ValidationFailed(errors=errors))


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(request, exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    """Global exception handler to prevent information leakage."""
    logger.exception("[%s] Unhandled exception", _request_id(request) or "unknown")
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "An internal error occurred"
    )


# =============================================================================
# Application factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for one set of settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    database = Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown events."""
        logger.info("Starting %s (%s)", settings.app_name, settings.environment)
        await database.create_all()
        logger.info("Database initialized")

        yield

        logger.info("Shutting down %s", settings.app_name)
        await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Real-estate listing API",
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.tokens = TokenService(settings)

    # Middleware: first added = innermost
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.is_production)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", tags=["root"])
    def home():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.enable_docs else None,
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        db_status = "healthy"
        try:
            await database.ping()
        except SQLAlchemyError:
            logger.exception("Database health check failed")
            db_status = "unhealthy"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "database": db_status,
        }

    app.include_router(api_router, prefix="/api")

    return app


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "estatehub.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
