"""
Exceptions raised by the authentication engine.

Authentication rejections and verifier faults are never raised; they are
reported as terminal outcomes (see outcomes.py). Only problems the caller
has to fix in code end up here.
"""


class TwoFactorError(Exception):
    """Base class for two-factor authentication errors."""


class ConfigurationError(TwoFactorError):
    """Strategy or provisioning was set up with missing or invalid values."""


class SecretDecodeError(TwoFactorError, ValueError):
    """Secret text is not valid base32."""
