import logging
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

import config
from proxy import build_headers, forward
from token_manager import TokenCache, TokenManager

# Logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("rht-proxy")

# Shared by every request handled in this process
TOKEN_CACHE = TokenCache()

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def request_url() -> str:
    """The inbound path with its query string, still percent-encoded."""
    raw = request.environ.get("RAW_URI") or request.environ.get("REQUEST_URI")
    url = raw.split("?", 1)[0] if raw else request.path
    if request.query_string:
        url += "?" + request.query_string.decode("latin-1")
    return url


# ----------------------
# App Setup
# ----------------------
def create_app(token_manager: Optional[TokenManager] = None,
               rate_limit: str = config.RATE_LIMIT) -> Flask:
    app = Flask(__name__)
    CORS(app, origins=[config.FRONTEND_ORIGIN])

    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[rate_limit],
        storage_uri="memory://",
    )

    if token_manager is None:
        token_manager = TokenManager(TOKEN_CACHE)

    # ----------------------
    # Endpoints
    # ----------------------
    @app.route("/", methods=["GET"])
    def health_check():
        return jsonify({"status": "proxy-running"}), 200

    # OPTIONS goes upstream like any other method
    @app.route(config.PROXY_PREFIX, methods=PROXY_METHODS,
               provide_automatic_options=False)
    @app.route(f"{config.PROXY_PREFIX}/", defaults={"subpath": ""},
               methods=PROXY_METHODS, provide_automatic_options=False)
    @app.route(f"{config.PROXY_PREFIX}/<path:subpath>", methods=PROXY_METHODS,
               provide_automatic_options=False)
    @limiter.limit(rate_limit)
    def proxy_handler(subpath=None):
        try:
            token = token_manager.get_valid_token()
            app_key = config.require_env("APP_KEY")

            headers = build_headers(request.headers.get("Content-Type"), app_key, token)
            upstream = forward(
                request.method,
                request_url(),
                headers,
                body=request.get_json(silent=True),
            )
            return jsonify(upstream.payload()), upstream.status
        except Exception as e:
            logger.exception("Proxy handler error: %s", e)
            return jsonify({
                "error": "An error occurred in the proxy handler.",
                "details": str(e),
            }), 500

    @app.errorhandler(429)
    def rate_limited(e):
        return jsonify({"error": "Too many requests", "details": str(e.description)}), 429

    return app


app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config.PORT)
