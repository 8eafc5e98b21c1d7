"""Tests for error handling"""
import json

import pytest
from unittest.mock import Mock, patch
from fastapi import HTTPException
from fastapi.responses import JSONResponse
from pymongo.errors import (
    DuplicateKeyError,
    ExecutionTimeout,
    NetworkTimeout,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from movie_ratings.core.errors import (
    ConflictError,
    ErrorResponse,
    InvalidInputError,
    NotFoundError,
    StoreUnavailableError,
    error_response_handler,
    http_exception_handler,
    is_transient_error,
    translate_store_errors,
)


class TestErrorResponse:
    """Test ErrorResponse exception classes"""

    def test_error_response_creation(self):
        error = ErrorResponse("Something went wrong", status_code=400)
        assert error.message == "Something went wrong"
        assert error.status_code == 400
        assert error.details == {}
        assert str(error) == "Something went wrong"

    @pytest.mark.parametrize("cls, status", [
        (InvalidInputError, 400),
        (NotFoundError, 404),
        (ConflictError, 409),
        (StoreUnavailableError, 503),
    ])
    def test_status_codes(self, cls, status):
        error = cls("boom", details={"movieId": 1})
        assert isinstance(error, ErrorResponse)
        assert error.status_code == status
        assert error.details == {"movieId": 1}


class TestTranslateStoreErrors:
    """Driver exceptions map onto the service error kinds"""

    @pytest.mark.parametrize("driver_error", [
        ServerSelectionTimeoutError("no primary"),
        NetworkTimeout("timed out"),
        ExecutionTimeout("operation exceeded time limit", code=50),
    ])
    def test_unavailable(self, driver_error):
        with pytest.raises(StoreUnavailableError) as exc_info:
            with translate_store_errors("find in movies"):
                raise driver_error

        assert exc_info.value.details["operation"] == "find in movies"
        assert exc_info.value.__cause__ is driver_error

    def test_write_conflict(self):
        with pytest.raises(ConflictError):
            with translate_store_errors("update in movies"):
                raise OperationFailure("WriteConflict", code=112)

    def test_transient_label(self):
        error = OperationFailure(
            "aborted", code=251, details={"errorLabels": ["TransientTransactionError"]}
        )
        assert is_transient_error(error)

        with pytest.raises(ConflictError):
            with translate_store_errors("commit transaction"):
                raise error

    def test_other_failures_propagate(self):
        error = DuplicateKeyError("E11000 duplicate key", code=11000)
        assert not is_transient_error(error)

        with pytest.raises(DuplicateKeyError):
            with translate_store_errors("insert into movies"):
                raise error

    def test_no_error(self):
        with translate_store_errors("ping"):
            value = 1
        assert value == 1


class TestErrorHandlers:
    """Test error handler functions"""

    @pytest.mark.asyncio
    async def test_error_response_handler(self):
        mock_request = Mock()
        mock_request.method = "POST"
        error = NotFoundError("Movie not found", details={"movieId": 123})

        with patch("movie_ratings.core.errors.logger") as mock_logger:
            response = await error_response_handler(mock_request, error)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 404
        assert json.loads(response.body) == {"error": "Movie not found", "details": {"movieId": 123}}
        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_side_errors_logged_as_error(self):
        mock_request = Mock()
        mock_request.method = "GET"
        error = StoreUnavailableError("Store unavailable during ping")

        with patch("movie_ratings.core.errors.logger") as mock_logger:
            response = await error_response_handler(mock_request, error)

        assert response.status_code == 503
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_http_exception_handler(self):
        mock_request = Mock()
        exception = HTTPException(status_code=403, detail="Forbidden")

        with patch("movie_ratings.core.errors.logger"):
            response = await http_exception_handler(mock_request, exception)

        assert response.status_code == 403
        assert json.loads(response.body) == {"error": "Forbidden"}
