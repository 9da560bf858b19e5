"""
FastAPI Dependencies for the twofactor API.

Provides:
- Login request extraction (JSON body + query string)
- Strategy and settings lookup from application state
- ResponseReporter, the HTTP side of the authentication reporter
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..auth.strategy import AUTH_FAILED, TwoFactorStrategy
from ..utils.config import Settings, get_settings
from .models import ErrorResponse, LoginResponse

logger = logging.getLogger(__name__)


# ============================================
# Login Request
# ============================================

@dataclass(frozen=True)
class LoginRequest:
    """Host request handed to the strategy (and, optionally, to verifiers)."""
    body: Any
    query: Dict[str, str]
    headers: Dict[str, str] = field(default_factory=dict)
    client_host: Optional[str] = None
    request_id: str = "-"


async def get_login_request(request: Request) -> LoginRequest:
    """Collect the JSON body and query parameters of a login call."""
    try:
        body = await request.json()
    except ValueError:
        body = None

    return LoginRequest(
        body=body,
        query=dict(request.query_params),
        headers=dict(request.headers),
        client_host=request.client.host if request.client else None,
        request_id=getattr(request.state, "request_id", "-"),
    )


# ============================================
# Application State
# ============================================

def get_strategy(request: Request) -> TwoFactorStrategy:
    """Get the authentication strategy configured for this app."""
    strategy = getattr(request.app.state, "strategy", None)
    if strategy is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication strategy is not configured",
        )
    return strategy


def get_app_settings(request: Request) -> Settings:
    """Get settings attached to the app, falling back to the environment."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_issuer(request: Request) -> Optional[str]:
    """Default TOTP issuer for enrollment."""
    issuer = getattr(request.app.state, "issuer", None)
    return issuer or get_app_settings(request).totp_issuer


# ============================================
# Reporting
# ============================================

def _public_message(message: Any) -> str:
    """Short failure text for the client; other rejection info is replaced."""
    if isinstance(message, str):
        return message
    if isinstance(message, Mapping):
        for key in ("error", "message"):
            if isinstance(message.get(key), str):
                return message[key]
    return AUTH_FAILED


def _public_principal(value: Any) -> Any:
    """Copy of the principal with LoginRequest values left out."""
    if isinstance(value, LoginRequest):
        return None
    if isinstance(value, Mapping):
        return {
            k: _public_principal(v)
            for k, v in value.items()
            if not isinstance(v, LoginRequest)
        }
    if isinstance(value, (list, tuple)):
        return [_public_principal(v) for v in value if not isinstance(v, LoginRequest)]
    return value


class ResponseReporter:
    """
    Turns the terminal outcome of an attempt into an HTTP response.

    Failures become 401 with a short message. Errors become 500;
    the cause is logged and never sent to the client. The login request
    (body and headers) is never echoed back.
    """

    def __init__(self, request_id: str = "-"):
        self.request_id = request_id
        self.response: Optional[JSONResponse] = None

    def report_success(self, principal: Any) -> None:
        body = LoginResponse(principal=jsonable_encoder(_public_principal(principal)))
        self.response = JSONResponse(
            status_code=status.HTTP_200_OK,
            content=body.model_dump(),
        )

    def report_failure(self, message: Any) -> None:
        body = ErrorResponse(
            error="Unauthorized",
            detail=_public_message(message),
            code="AUTH_FAILED",
        )
        self.response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=body.model_dump(exclude_none=True),
        )

    def report_error(self, cause: Any) -> None:
        exc_info = cause if isinstance(cause, BaseException) else None
        logger.error(f"[{self.request_id}] Authentication error: {cause}", exc_info=exc_info)
        body = ErrorResponse(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            request_id=self.request_id,
        )
        self.response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(exclude_none=True),
        )
