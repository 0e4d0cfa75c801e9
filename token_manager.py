"""Login token acquisition and caching for the RHT platform.

A single :class:`TokenCache` lives for the whole process and is shared by
every request. :class:`TokenManager` refreshes it when it is empty or within
a minute of expiry. Refreshes are not serialized: two requests that find the
cache stale will both log in and the last response written wins. Any token
the upstream hands out is equally valid, so the duplicate login only costs a
round trip.
"""

import hashlib
import logging
import time
from typing import Callable, Optional, Tuple

import requests

import config
from errors import AuthError

logger = logging.getLogger("rht-proxy.token")

REFRESH_MARGIN_MS = 60000
DEFAULT_EXPIRES_IN = 3600


class TokenCache:
    """The cached token and its expiry in milliseconds since the epoch."""

    def __init__(self) -> None:
        self.value: Optional[str] = None
        self.expires_at: int = 0

    def read(self) -> Tuple[Optional[str], int]:
        return self.value, self.expires_at

    def write(self, value: str, expires_at: int) -> None:
        self.value = value
        self.expires_at = expires_at

    def clear(self) -> None:
        self.value = None
        self.expires_at = 0


def derive_password(secret: str) -> str:
    """Return the password the login endpoint expects for *secret*.

    The MD5 hex digest is cut into its first 6, middle 20 and last 6
    characters and reassembled as last + middle + first.
    """
    digest = hashlib.md5(secret.encode("utf-8")).hexdigest()
    return digest[-6:] + digest[6:26] + digest[:6]


class TokenManager:
    def __init__(
        self,
        cache: TokenCache,
        host: str = config.UPSTREAM_HOST,
        timeout: Optional[float] = config.UPSTREAM_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache = cache
        self.host = host
        self.timeout = timeout
        self.clock = clock

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get_valid_token(self) -> str:
        value, expires_at = self.cache.read()
        if value and self._now_ms() < expires_at - REFRESH_MARGIN_MS:
            logger.info("Using cached token.")
            return value

        logger.info("Fetching a new token...")
        try:
            return self._login()
        except Exception:
            self.cache.clear()
            raise

    def _login(self) -> str:
        username = config.require_env("LOGIN_USERNAME")
        password = derive_password(config.require_env("LOGIN_PASSWORD"))

        try:
            resp = requests.post(
                f"{self.host}{config.LOGIN_ENDPOINT}",
                json={"username": username, "password": password},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Login request failed: %s", e)
            raise AuthError(f"Failed to fetch token: {e}") from e

        try:
            body = resp.json()
        except ValueError as e:
            raise AuthError(
                f"Failed to fetch token: login returned non-JSON response (HTTP {resp.status_code})"
            ) from e

        if not isinstance(body, dict):
            body = {}
        data = body.get("data")
        token = data.get("token") if isinstance(data, dict) else None
        if not resp.ok or not token:
            logger.error("Login rejected (HTTP %s)", resp.status_code)
            raise AuthError(f"Failed to fetch token: {body.get('msg') or 'Unknown error'}")

        try:
            expires_in = float(data.get("expires_in") or DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError) as e:
            raise AuthError(f"Failed to fetch token: bad expires_in {data.get('expires_in')!r}") from e
        self.cache.write(token, self._now_ms() + int(expires_in * 1000))
        logger.info("Successfully fetched a new token.")
        return token
