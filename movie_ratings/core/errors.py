"""
Service error types, MongoDB driver error translation and FastAPI handlers.
"""

import traceback
from contextlib import contextmanager
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import (
    ConnectionFailure,
    ExecutionTimeout,
    OperationFailure,
    PyMongoError,
    WTimeoutError,
)

from movie_ratings.core.config import config
from movie_ratings.core.logger import logger

WRITE_CONFLICT_CODE = 112
TRANSIENT_TRANSACTION_LABEL = "TransientTransactionError"
UNKNOWN_COMMIT_RESULT_LABEL = "UnknownTransactionCommitResult"


class ErrorResponse(Exception):
    """Custom exception for application errors"""

    def __init__(self, message: str, status_code: int = 400, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(ErrorResponse):
    """Malformed rating value or identity. Caller's fault, never retried."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)


class NotFoundError(ErrorResponse):
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=404, details=details)


class ConflictError(ErrorResponse):
    """Transaction could not commit. Safe to retry the whole operation."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class StoreUnavailableError(ErrorResponse):
    """Network failure or timeout talking to the store."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)


class ErrorResponseModel(BaseModel):
    """Pydantic model for error responses"""
    error: str
    details: Optional[dict] = None


def is_transient_error(exc: PyMongoError) -> bool:
    """True when the whole transaction may be retried from scratch."""
    if exc.has_error_label(TRANSIENT_TRANSACTION_LABEL):
        return True
    return isinstance(exc, OperationFailure) and exc.code == WRITE_CONFLICT_CODE


@contextmanager
def translate_store_errors(operation: str):
    """
    Map driver exceptions raised inside the block onto the service's
    error taxonomy. Anything unrecognised propagates unchanged.
    """
    try:
        yield
    except (ConnectionFailure, ExecutionTimeout, WTimeoutError) as e:
        raise StoreUnavailableError(
            f"Store unavailable during {operation}",
            details={"operation": operation, "reason": str(e)},
        ) from e
    except OperationFailure as e:
        if is_transient_error(e):
            raise ConflictError(
                f"Conflicting write during {operation}",
                details={"operation": operation, "reason": str(e)},
            ) from e
        raise


async def error_response_handler(request: Request, exc: ErrorResponse):
    """Handler for custom ErrorResponse exceptions"""
    metadata = {
        "event": "error_response",
        "status_code": exc.status_code,
        "url": str(request.url),
        "method": request.method,
        **exc.details,
    }

    if config.is_development and exc.status_code >= 500:
        metadata["traceback"] = "".join(traceback.format_exception(exc))

    if exc.status_code >= 500:
        logger.error(f"Error: {exc.message}", metadata=metadata)
    else:
        logger.warning(f"Error: {exc.message}", metadata=metadata)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details},
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handler for FastAPI HTTPException"""
    logger.warning(
        f"HTTPException: {exc.detail}",
        metadata={
            "event": "http_exception",
            "status_code": exc.status_code,
            "url": str(request.url),
            "method": request.method,
        },
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
