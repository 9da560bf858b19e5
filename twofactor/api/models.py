"""
Pydantic Models for the twofactor API.

Request and response models for all API endpoints.
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# ============================================
# Authentication Models
# ============================================

class LoginResponse(BaseModel):
    """Successful two-factor authentication."""
    authenticated: bool = True
    principal: Any = Field(..., description="Principal returned by the password verifier")


class TotpRegisterRequest(BaseModel):
    """
    TOTP enrollment request.

    The issuer falls back to the server's configured issuer when omitted.
    """
    username: str = Field(..., description="Account label shown in the authenticator app")
    issuer: Optional[str] = Field(None, description="Application name shown in the authenticator app")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "username": "alice",
                "issuer": "ACME"
            }
        }
    )


class ProvisioningResponse(BaseModel):
    """
    TOTP enrollment response with QR code.

    The secret is not stored by the server; persist it for later
    code verification.
    """
    secret: str
    provisioning_uri: str
    qr_code_base64: str = Field(..., description="SVG QR code as a data URI")


# ============================================
# Health Models
# ============================================

class HealthStatus(BaseModel):
    """Health check response."""
    status: str = Field(..., description="healthy or unhealthy")
    version: str
    services: Dict[str, str]
    timestamp: datetime


# ============================================
# Error Models
# ============================================

class ErrorResponse(BaseModel):
    """
    Standard error response.

    All API errors return this format with an error message,
    optional detail, and error code for programmatic handling.
    """
    error: str = Field(..., description="Error type/summary")
    detail: Optional[str] = Field(None, description="Detailed error message")
    code: Optional[str] = Field(None, description="Error code for programmatic handling")
    request_id: Optional[str] = Field(None, description="Request ID for support/tracing")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Unauthorized",
                "detail": "Invalid username or password",
                "code": "AUTH_FAILED"
            }
        }
    )
