"""
Web API configuration.
"""
import os

from salesboard.config import config, VERSION

# Web server settings
WEB_HOST = config.web.host
WEB_PORT = config.web.port

# Logging
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Per-client limits for the JSON endpoints
RATE_LIMIT = f"{config.web.rate_limit_per_minute}/minute"
RELOAD_RATE_LIMIT = "5/minute"

# Seconds before a request is answered with 504; a reload pages through both feeds
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
RELOAD_TIMEOUT = float(os.getenv("RELOAD_TIMEOUT", "120"))

__all__ = [
    "WEB_HOST",
    "WEB_PORT",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "RATE_LIMIT",
    "RELOAD_RATE_LIMIT",
    "REQUEST_TIMEOUT",
    "RELOAD_TIMEOUT",
    "VERSION",
]
