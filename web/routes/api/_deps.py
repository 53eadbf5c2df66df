"""Shared dependencies for API route modules."""
import time

from slowapi import Limiter
from slowapi.util import get_remote_address

from salesboard.exceptions import ValidationError
from salesboard.observability import get_logger
from salesboard.validators import (
    validate_choice,
    validate_group_by,
    validate_metric,
    validate_name,
    validate_period,
    validate_region,
    validate_sort_direction,
    validate_window,
)
from web.config import RATE_LIMIT, RELOAD_RATE_LIMIT

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

# Track startup time for uptime calculation
START_TIME = time.time()

__all__ = [
    "limiter",
    "get_logger",
    "START_TIME",
    "RATE_LIMIT",
    "RELOAD_RATE_LIMIT",
    "ValidationError",
    "validate_choice",
    "validate_group_by",
    "validate_metric",
    "validate_name",
    "validate_period",
    "validate_region",
    "validate_sort_direction",
    "validate_window",
]
