"""
twofactor - password + TOTP authentication engine.

This package provides a two-phase authentication strategy (primary
credential, then time-based one-time passcode), TOTP secret provisioning
for authenticator apps, and a small FastAPI host that exposes both.
"""

__version__ = "0.1.0"
__author__ = "twofactor contributors"

from .auth import (
    ConfigurationError,
    StrategyOptions,
    TwoFactorStrategy,
    decode_secret,
    register,
)

__all__ = [
    "TwoFactorStrategy",
    "StrategyOptions",
    "register",
    "decode_secret",
    "ConfigurationError",
]
