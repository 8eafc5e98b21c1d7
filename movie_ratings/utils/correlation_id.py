"""
Correlation ID utilities for request and batch-run tracing
"""

import uuid
from contextvars import ContextVar
from typing import Mapping, Optional

from movie_ratings.core.config import config

CORRELATION_ID_HEADER = config.correlation_id_header

# Context variable to store correlation ID across async operations
correlation_id_context: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get the current correlation ID from context.
    Generates a new one if none exists.
    """
    correlation_id = correlation_id_context.get("")
    if not correlation_id:
        correlation_id = create_correlation_id()
        correlation_id_context.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_context.set(correlation_id)


def create_correlation_id() -> str:
    return str(uuid.uuid4())


def extract_correlation_id_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    """
    Extract correlation ID from request headers (case-insensitive).

    Returns:
        The header value, or None when the caller did not send one
    """
    wanted = CORRELATION_ID_HEADER.lower()
    for name, value in headers.items():
        if name.lower() == wanted and value:
            return value
    return None
