"""Authenticated gateway client for the Infisical secrets API."""

from gateway.client import InfisicalGateway
from gateway.errors import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    GatewayError,
    InvalidInputError,
    NotFoundError,
    TransientServiceError,
    UnclassifiedApiError,
)
from gateway.models import Environment, Folder, Project, Secret, SecretsListing

__all__ = [
    "InfisicalGateway",
    # Models
    "Secret",
    "Folder",
    "Environment",
    "Project",
    "SecretsListing",
    # Errors
    "GatewayError",
    "ConfigurationError",
    "AuthenticationError",
    "ApiError",
    "InvalidInputError",
    "NotFoundError",
    "ConflictError",
    "TransientServiceError",
    "UnclassifiedApiError",
]
