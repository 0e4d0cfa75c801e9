import os
from typing import Optional

from errors import ConfigError

# ----------------------
# Upstream
# ----------------------
UPSTREAM_HOST = os.getenv("UPSTREAM_HOST", "http://39.108.191.53:8089").rstrip("/")
LOGIN_ENDPOINT = "/api/v1/login/login"
PROXY_PREFIX = "/api/proxy"


def _timeout(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    return float(value)


# No timeout unless one is configured
UPSTREAM_TIMEOUT = _timeout(os.getenv("UPSTREAM_TIMEOUT"))

# ----------------------
# App
# ----------------------
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "*")
RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8080"))


def require_env(name: str) -> str:
    """Read a secret at request time, failing if it is missing or empty."""
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"{name} is not set in the environment.")
    return value
