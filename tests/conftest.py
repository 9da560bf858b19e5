"""
Pytest configuration and shared fixtures for twofactor tests.

This module provides common test fixtures for:
- Host requests carrying body and query payloads
- Mock authentication reporters
- Settings isolated from the environment
"""
import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock

from twofactor.utils.config import Settings, get_settings


# ============================================
# Request Fixtures
# ============================================

@pytest.fixture
def make_request():
    """
    Build a host request with body and query payloads.
    Either payload may be None, like a request without a body.
    """
    def _make(body=None, query=None):
        return SimpleNamespace(body=body, query=query)

    return _make


@pytest.fixture
def reporter():
    """
    Mock host reporter recording which outcome was delivered.
    """
    return MagicMock(spec=["report_success", "report_failure", "report_error"])


# ============================================
# Settings Fixtures
# ============================================

@pytest.fixture
def settings():
    """
    Provide settings independent of the process environment.
    """
    return Settings(
        totp_issuer="ACME",
        totp_window=6,
        log_level="INFO",
        cors_origins=["http://localhost:3000"],
        app_version="0.1.0-test",
        app_env="test",
    )


@pytest.fixture
def clear_settings_cache():
    """
    Reset cached settings around a test that changes the environment.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
