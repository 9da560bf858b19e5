"""
twofactor REST API.

FastAPI host for the two-factor authentication strategy.
"""
from .main import create_app

__all__ = ["create_app"]
