import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import requests

import config
from errors import ForwardError

logger = logging.getLogger("rht-proxy")

BODYLESS_METHODS = ("GET", "HEAD")


@dataclass(frozen=True)
class JsonBody:
    data: Any


@dataclass(frozen=True)
class TextBody:
    text: str


UpstreamBody = Union[JsonBody, TextBody]


@dataclass(frozen=True)
class UpstreamResponse:
    status: int
    body: UpstreamBody

    def payload(self) -> Any:
        """What gets JSON-encoded back to the caller."""
        if isinstance(self.body, JsonBody):
            return self.body.data
        return self.body.text


def target_path(raw_url: str, prefix: str = config.PROXY_PREFIX) -> str:
    """Drop the first occurrence of *prefix*, keeping the rest and any query."""
    return raw_url.replace(prefix, "", 1)


def build_headers(content_type: Optional[str], app_key: str, token: str) -> Dict[str, str]:
    return {
        "Content-Type": content_type or "application/json",
        "App-Key": app_key,
        "X-Token": token,
    }


def encode_body(method: str, body: Any) -> Optional[str]:
    if method.upper() in BODYLESS_METHODS or body is None:
        return None
    return json.dumps(body)


def read_body(resp: requests.Response, method: str = "GET") -> UpstreamBody:
    # HEAD responses never carry a body
    if method.upper() == "HEAD":
        return TextBody("")
    content_type = resp.headers.get("Content-Type", "")
    if "application/json" in content_type:
        try:
            return JsonBody(resp.json())
        except ValueError as e:
            raise ForwardError(
                f"Upstream returned invalid JSON (HTTP {resp.status_code}): {e}"
            ) from e
    return TextBody(resp.text)


def forward(
    method: str,
    raw_url: str,
    headers: Dict[str, str],
    body: Any = None,
    host: str = config.UPSTREAM_HOST,
    timeout: Optional[float] = config.UPSTREAM_TIMEOUT,
) -> UpstreamResponse:
    """Send the request to the upstream and read back its response."""
    url = f"{host}{target_path(raw_url)}"
    logger.info("Forwarding %s %s", method, url)
    try:
        resp = requests.request(
            method,
            url,
            headers=headers,
            data=encode_body(method, body),
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise ForwardError(f"Upstream request failed: {e}") from e

    return UpstreamResponse(status=resp.status_code, body=read_body(resp, method))
