"""
Authentication Endpoints.

Provides two-factor login and TOTP enrollment.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from ..models import (
    ErrorResponse,
    LoginResponse,
    ProvisioningResponse,
    TotpRegisterRequest,
)
from ..deps import (
    LoginRequest,
    ResponseReporter,
    get_issuer,
    get_login_request,
    get_strategy,
)
from ...auth.errors import ConfigurationError
from ...auth.mfa import register
from ...auth.strategy import TwoFactorStrategy

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid credentials"},
        500: {"model": ErrorResponse, "description": "Verifier failure"},
    },
)
async def login(
    login_request: LoginRequest = Depends(get_login_request),
    strategy: TwoFactorStrategy = Depends(get_strategy),
):
    """
    Authenticate with username, password and TOTP code.

    Fields are read from the JSON body first, then from the query string.
    Wrong password and wrong code produce the same 401 response.
    """
    reporter = ResponseReporter(login_request.request_id)
    await strategy.authenticate(login_request, reporter)
    return reporter.response


@router.post(
    "/totp/register",
    response_model=ProvisioningResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
    },
)
async def register_totp(
    data: TotpRegisterRequest,
    default_issuer: Optional[str] = Depends(get_issuer),
):
    """
    Start TOTP enrollment.

    Returns a QR code and secret for authenticator app setup. The secret
    is not stored; the caller must persist it.
    """
    try:
        payload = register(data.username, data.issuer or default_issuer)
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return ProvisioningResponse(
        secret=payload.secret,
        provisioning_uri=payload.uri,
        qr_code_base64=payload.qr_base64,
    )
