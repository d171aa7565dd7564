"""Unit tests for response classification."""

import httpx
import pytest

from gateway.classifier import classify_response, is_retryable_status
from gateway.errors import (
    ApiError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TransientServiceError,
    UnclassifiedApiError,
)


class TestIsRetryableStatus:
    """Tests for the retryable status set."""

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable(self, status):
        assert is_retryable_status(status) is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 501])
    def test_not_retryable(self, status):
        assert is_retryable_status(status) is False


class TestClassifyResponse:
    """Tests for classify_response."""

    @pytest.mark.parametrize(
        "status,expected,prefix",
        [
            (404, NotFoundError, "Resource not found"),
            (409, ConflictError, "Conflict"),
            (400, InvalidInputError, "Bad request"),
        ],
    )
    def test_text_body_mapped_by_status(self, status, expected, prefix):
        """Text bodies map 404/409/400 to typed errors."""
        # Arrange
        response = httpx.Response(status, text="details here")

        # Act
        error = classify_response(response)

        # Assert
        assert type(error) is expected
        assert error.status == status
        assert str(error) == f"{prefix}: details here"

    def test_text_body_retryable_status_is_transient(self):
        error = classify_response(httpx.Response(503, text="maintenance"))

        assert isinstance(error, TransientServiceError)
        assert str(error) == "Infisical API error (503): maintenance"

    def test_text_body_other_status_is_unclassified(self):
        error = classify_response(httpx.Response(403, text="Forbidden"))

        assert isinstance(error, UnclassifiedApiError)
        assert error.status == 403

    def test_json_message_is_generic(self):
        """A JSON message wins over status-specific mapping."""
        error = classify_response(httpx.Response(404, json={"message": "Folder missing"}))

        assert isinstance(error, UnclassifiedApiError)
        assert not isinstance(error, NotFoundError)
        assert error.message == "Infisical API error (404): Folder missing"

    def test_json_message_on_retryable_status(self):
        error = classify_response(httpx.Response(429, json={"message": "Slow down"}))

        assert isinstance(error, TransientServiceError)
        assert error.status == 429

    def test_json_without_message_falls_back_to_text(self):
        error = classify_response(httpx.Response(409, json={"error": "dup"}))

        assert isinstance(error, ConflictError)
        assert "dup" in str(error)

    def test_unparseable_json_never_raises(self):
        """Malformed bodies still produce an error value."""
        response = httpx.Response(
            400,
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        error = classify_response(response)

        assert isinstance(error, UnclassifiedApiError)
        assert "Failed to parse error response" in str(error)
        assert isinstance(error, ApiError)
