"""Exceptions raised by the Infisical gateway."""

from typing import Optional

from core.config.exceptions import ConfigError


class GatewayError(Exception):
    """Base exception for all gateway failures."""

    pass


class ConfigurationError(GatewayError, ConfigError):
    """Raised at construction when credentials are missing or contradictory."""

    pass


class AuthenticationError(GatewayError):
    """
    Raised when the universal auth login exchange fails.

    Attributes:
        status: HTTP status of the login response, None if none arrived
        retryable: Whether the outer request may be retried
    """

    def __init__(
        self, message: str, status: Optional[int] = None, retryable: bool = False
    ):
        super().__init__(message)
        self.status = status
        self.retryable = retryable


class ApiError(GatewayError):
    """Non-OK response from the Infisical API."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
        self.message = message


class InvalidInputError(ApiError):
    """400, or a request rejected before it was sent."""

    pass


class NotFoundError(ApiError):
    """404."""

    pass


class ConflictError(ApiError):
    """409."""

    pass


class TransientServiceError(ApiError):
    """408/429/5xx or a network failure; retried before it surfaces."""

    pass


class UnclassifiedApiError(ApiError):
    pass
