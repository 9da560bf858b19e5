"""
twofactor REST API - Main Application.

FastAPI host for the password + TOTP authentication strategy.

Usage:
    from twofactor.api import create_app
    from twofactor.auth import TwoFactorStrategy

    strategy = TwoFactorStrategy(check_password, load_totp_secret)
    app = create_app(strategy, issuer="ACME")

    # uvicorn myservice:app --port 8000
"""
import os
import time
import uuid
import logging
from contextvars import ContextVar
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from .routes import auth_router, health_router
from ..auth.strategy import TwoFactorStrategy
from ..utils.config import Settings, get_settings

# Configure logging with request context support
LOG_LEVEL = get_settings().log_level
LOG_FORMAT = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"
)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Add request_id to log records."""
    def filter(self, record):
        if not hasattr(record, 'request_id'):
            record.request_id = request_id_var.get()
        return True


logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
)
# Filter on the handlers so records from every logger carry request_id
for _handler in logging.getLogger().handlers:
    _handler.addFilter(RequestIdFilter())
logger = logging.getLogger(__name__)

API_TITLE = "twofactor API"
API_DESCRIPTION = """
**Password + TOTP authentication**

1. Enroll: `POST /auth/totp/register` returns a secret and QR code
2. Login: `POST /auth/login` with `username`, `password` and `code`

Wrong passwords and wrong codes are indistinguishable (401).
"""


def create_app(
    strategy: Optional[TwoFactorStrategy],
    issuer: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        strategy: Strategy used by /auth/login (None answers 503).
        issuer: Default TOTP issuer for enrollment (falls back to settings).
        settings: Settings override (defaults to the environment).

    Returns:
        Configured FastAPI instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.strategy = strategy
    app.state.issuer = issuer
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request tracking and security headers middleware
    @app.middleware("http")
    async def add_request_tracking_and_security(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(f"Request failed: {e}", exc_info=True)
                raise

            process_time = (time.time() - start_time) * 1000

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time-Ms"] = f"{process_time:.2f}"

            # Skip health checks to reduce noise
            if not request.url.path.startswith("/health"):
                logger.info(
                    f"{request.method} {request.url.path} "
                    f"-> {response.status_code} ({process_time:.1f}ms)"
                )
        finally:
            request_id_var.reset(token)

        # Security headers
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(l) for l in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "Validation Error",
                "detail": "; ".join(errors),
                "code": "VALIDATION_ERROR",
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal Server Error",
                "request_id": request_id,
                "detail": str(exc) if settings.app_env == "development" else None,
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(auth_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": API_TITLE,
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app
