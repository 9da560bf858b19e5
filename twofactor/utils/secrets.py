"""
Secrets and settings lookup for twofactor.

Supports multiple sources:
1. {NAME}_FILE environment variables (Docker/Kubernetes secrets files)
2. Environment variables (development)
3. /run/secrets/{name} files (Docker secrets default path)

Usage:
    from twofactor.utils.secrets import get_secret

    issuer = get_secret("TOTP_ISSUER", default="")
"""
import os
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def _read_file(path: str) -> Optional[str]:
    try:
        with open(path, 'r') as f:
            return f.read().strip()
    except OSError as e:
        logger.warning(f"Failed to read secret file {path}: {e}")
        return None


def get_secret(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get a secret or setting value from various sources.

    Priority:
    1. {NAME}_FILE environment variable (path to file containing value)
    2. {NAME} environment variable (direct value)
    3. /run/secrets/{name.lower()} file (Docker secrets default path)
    4. Default value

    Args:
        name: Value name (e.g., "TOTP_ISSUER")
        default: Default value if not found

    Returns:
        Value or default
    """
    file_path = os.environ.get(f"{name}_FILE")
    if file_path and os.path.isfile(file_path):
        value = _read_file(file_path)
        if value is not None:
            logger.debug(f"Loaded {name} from file")
            return value

    env_value = os.environ.get(name)
    if env_value:
        logger.debug(f"Loaded {name} from environment")
        return env_value

    docker_secret_path = f"/run/secrets/{name.lower()}"
    if os.path.isfile(docker_secret_path):
        value = _read_file(docker_secret_path)
        if value is not None:
            logger.debug(f"Loaded {name} from Docker secrets")
            return value

    if default is None:
        logger.warning(f"Secret {name} not found, no default provided")
    return default


def mask_secret(secret: str, visible_chars: int = 4) -> str:
    """
    Mask a secret for safe logging.

    Args:
        secret: The secret to mask
        visible_chars: Number of characters to show at start and end

    Returns:
        Masked string like "abc...xyz"
    """
    if not secret or len(secret) <= visible_chars * 2:
        return "***"
    return f"{secret[:visible_chars]}...{secret[-visible_chars:]}"
