"""Maps non-OK HTTP responses onto the gateway error taxonomy."""

import logging

import httpx

from gateway.errors import (
    ApiError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TransientServiceError,
    UnclassifiedApiError,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})

TEXT_ERRORS = {
    404: (NotFoundError, "Resource not found"),
    409: (ConflictError, "Conflict"),
    400: (InvalidInputError, "Bad request"),
}


def is_retryable_status(status: int) -> bool:
    return status in RETRYABLE_STATUS_CODES


def _generic(status: int, detail: str) -> ApiError:
    cls = TransientServiceError if is_retryable_status(status) else UnclassifiedApiError
    return cls(f"Infisical API error ({status}): {detail}", status=status)


def classify_response(response: httpx.Response) -> ApiError:
    """
    Turn a non-OK response into a typed error. Never raises.

    JSON bodies carrying a message become a generic API error; other
    bodies are read as text and mapped by status (404, 409, 400), anything
    else is generic.
    """
    status = response.status_code
    try:
        content_type = response.headers.get("content-type", "")

        if "application/json" in content_type:
            data = response.json()
            if isinstance(data, dict) and data.get("message"):
                return _generic(status, str(data["message"]))

        text = response.text
        if status in TEXT_ERRORS:
            cls, prefix = TEXT_ERRORS[status]
            return cls(f"{prefix}: {text}", status=status)
        return _generic(status, text)
    except Exception as e:
        logger.debug(f"Could not read error body for status {status}: {e}")
        return UnclassifiedApiError(
            f"Infisical API error ({status}): Failed to parse error response",
            status=status,
        )
