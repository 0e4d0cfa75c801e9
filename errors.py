"""
Exception classes raised while proxying to the RHT platform.
"""


class ProxyError(Exception):
    """Base class for all proxy errors."""
    pass


class ConfigError(ProxyError):
    """Raised when a required environment variable is not set."""
    pass


class AuthError(ProxyError):
    """Raised when the upstream login fails or cannot be reached."""
    pass


class ForwardError(ProxyError):
    """Raised when the forwarded request fails or its response cannot be read."""
    pass
