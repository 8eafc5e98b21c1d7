"""
Core module initialization
"""

from .config import Config, config
from .errors import (
    ConflictError,
    ErrorResponse,
    ErrorResponseModel,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    error_response_handler,
    http_exception_handler,
    translate_store_errors,
)
from .logger import logger

__all__ = [
    "Config",
    "config",
    "ConflictError",
    "ErrorResponse",
    "ErrorResponseModel",
    "InvalidInputError",
    "NotFoundError",
    "StoreUnavailableError",
    "error_response_handler",
    "http_exception_handler",
    "translate_store_errors",
    "logger",
]
