"""
Authentication for twofactor.

This package provides:
- Two-phase (password + TOTP) authentication strategy
- TOTP secret provisioning (secret, otpauth URI, QR code)
- Nested field lookup for request payloads
"""
from .errors import ConfigurationError, SecretDecodeError, TwoFactorError
from .lookup import lookup
from .mfa import (
    ProvisioningPayload,
    decode_secret,
    encode_secret,
    generate_qr_code_base64,
    get_current_totp,
    get_totp_provisioning_uri,
    register,
    verify_totp,
)
from .outcomes import (
    Accepted,
    AuthenticationReporter,
    Errored,
    Failure,
    FailureKind,
    InternalError,
    Rejected,
    SecretResolved,
    Success,
)
from .strategy import (
    AUTH_FAILED,
    MISSING_CREDENTIALS,
    AuthenticateOptions,
    Credentials,
    StrategyOptions,
    TwoFactorStrategy,
)

__all__ = [
    "TwoFactorStrategy",
    "StrategyOptions",
    "AuthenticateOptions",
    "Credentials",
    "AUTH_FAILED",
    "MISSING_CREDENTIALS",
    "Accepted",
    "Rejected",
    "Errored",
    "SecretResolved",
    "Success",
    "Failure",
    "FailureKind",
    "InternalError",
    "AuthenticationReporter",
    "ProvisioningPayload",
    "register",
    "decode_secret",
    "encode_secret",
    "get_totp_provisioning_uri",
    "generate_qr_code_base64",
    "verify_totp",
    "get_current_totp",
    "lookup",
    "ConfigurationError",
    "SecretDecodeError",
    "TwoFactorError",
]
