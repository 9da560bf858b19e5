"""
Runtime settings for twofactor.

All values come from the environment (or secrets files) through
get_secret(), and are read once per process.
"""
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from .secrets import get_secret

logger = logging.getLogger(__name__)

DEFAULT_TOTP_WINDOW = 6
DEFAULT_CORS_ORIGINS = "http://localhost:3000"


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration."""
    totp_issuer: Optional[str]
    totp_window: int
    log_level: str
    cors_origins: List[str]
    app_version: str
    app_env: str

    def strategy_options(self, **overrides):
        """Build strategy options using the configured TOTP window."""
        from ..auth.strategy import StrategyOptions

        values = {"window": self.totp_window}
        values.update(overrides)
        return StrategyOptions(**values)


def _int_setting(name: str, default: int) -> int:
    raw = get_secret(name, default=str(default))
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: {raw!r}, using {default}")
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load settings from the environment.

    Call get_settings.cache_clear() to pick up changed variables.
    """
    origins = get_secret("CORS_ORIGINS", default=DEFAULT_CORS_ORIGINS)
    return Settings(
        totp_issuer=get_secret("TOTP_ISSUER", default="") or None,
        totp_window=_int_setting("TOTP_WINDOW", DEFAULT_TOTP_WINDOW),
        log_level=get_secret("LOG_LEVEL", default="INFO").upper(),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        app_version=get_secret("APP_VERSION", default="0.1.0"),
        app_env=get_secret("APP_ENV", default="production"),
    )
