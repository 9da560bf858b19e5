"""
Shared utilities for twofactor.

This package provides:
- Configuration management
- Secrets lookup and masking
"""
from .config import Settings, get_settings
from .secrets import get_secret, mask_secret

__all__ = ["Settings", "get_settings", "get_secret", "mask_secret"]
