"""Gateway facade - public operations over the Infisical API."""

import logging
import time
from typing import Callable, Optional
from urllib.parse import quote

import httpx

from core.config.loader import DEFAULT_BASE_URL
from core.utils.decorators import log_time, validate_args
from gateway.aggregator import ResourceAggregator
from gateway.auth import TokenAuthenticator
from gateway.credentials import CredentialStore
from gateway.errors import ConfigurationError, GatewayError, InvalidInputError
from gateway.executor import (
    MAX_RETRIES,
    RETRY_DELAY_SECONDS,
    RequestExecutor,
    unwrap,
)
from gateway.models import (
    Project,
    Secret,
    SecretCreateRequest,
    SecretDeleteRequest,
    SecretsListing,
    SecretUpdateRequest,
)

logger = logging.getLogger(__name__)

REQUIRED = (bool, "workspaceId is required")


def _segment(value: str) -> str:
    return quote(value, safe="")


def _number(section: dict, key: str, default, cast=float):
    """Numeric config value; values filled from ${VAR} arrive as strings."""
    value = section.get(key)
    if value is None or value == "":
        return cast(default)
    try:
        return cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e


class InfisicalGateway:
    """
    Authenticated client for the Infisical secrets API.

    Every call re-fetches from the service; the only state shared between
    calls is the credential store's access token. Safe to use from several
    threads.

    Usage:
        config = ConfigLoader().load()
        with InfisicalGateway(config) as gateway:
            listing = gateway.get_secrets("ws-1", path="/", environment="dev")
            for secret in listing.secrets:
                print(secret.key, secret.readonly)
    """

    def __init__(
        self,
        config: dict,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Dict with an `infisical` section (see ConfigLoader)
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
            clock: Seconds since the epoch, used for token expiry
            sleep: Used for the backoff delay between retries

        Raises:
            ConfigurationError: If no usable credentials are configured, or a
                numeric setting is not a number
        """
        try:
            self.store = CredentialStore.from_config(config)
        except GatewayError as e:
            logger.error(f"Failed to initialize Infisical API client: {e}")
            raise

        infisical = config["infisical"]
        self.base_url = (infisical.get("baseUrl") or DEFAULT_BASE_URL).rstrip("/")
        retry = infisical.get("retry") or {}
        timeout = _number(infisical, "timeout", 30)
        max_retries = _number(retry, "maxRetries", MAX_RETRIES, cast=int)
        retry_delay = _number(retry, "initialDelayMs", RETRY_DELAY_SECONDS * 1000) / 1000

        self._http = httpx.Client(timeout=timeout, transport=transport)
        self.authenticator = TokenAuthenticator(
            self.store, self._http, self.base_url, clock=clock
        )
        self.executor = RequestExecutor(
            self.store,
            self.authenticator,
            self._http,
            self.base_url,
            max_retries=max_retries,
            retry_delay=retry_delay,
            sleep=sleep,
        )
        self.aggregator = ResourceAggregator(self.executor)

        logger.info(
            f"Initialized Infisical API client with base URL: {self.base_url} "
            f"({self.store.current_strategy()})"
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "InfisicalGateway":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- Listing ---

    @log_time
    @validate_args(InvalidInputError, workspace_id=REQUIRED)
    def get_secrets(
        self,
        workspace_id: str,
        path: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> SecretsListing:
        """
        Secrets at a path, native first then imported (readonly), plus folders.
        """
        logger.info(
            f"Fetching secrets from Infisical (workspace: {workspace_id}, "
            f"path: {path or 'root'}, env: {environment or 'default'})"
        )
        try:
            return self.aggregator.get_secrets(workspace_id, path, environment)
        except GatewayError as e:
            logger.error(f"Failed to get secrets: {e}")
            raise

    @log_time
    @validate_args(InvalidInputError, workspace_id=REQUIRED)
    def get_environments(self, workspace_id: str) -> Project:
        logger.info(f"Fetching environments from Infisical (workspace: {workspace_id})")
        try:
            return self.aggregator.get_environments(workspace_id)
        except GatewayError as e:
            logger.error(f"Failed to get environments: {e}")
            raise

    # --- Single secret ---

    @validate_args(
        InvalidInputError,
        workspace_id=REQUIRED,
        secret_key=(bool, "secretKey is required"),
    )
    def get_secret_by_key(
        self,
        workspace_id: str,
        secret_key: str,
        environment: Optional[str] = None,
        path: Optional[str] = None,
    ) -> Secret:
        """Fetch one secret, value included. Readonly is passed through as returned."""
        logger.info(
            f"Fetching secret {secret_key} from Infisical (workspace: {workspace_id}, "
            f"path: {path or 'root'}, env: {environment or 'default'})"
        )
        response = self.executor.request(
            "GET",
            f"/v3/secrets/raw/{_segment(secret_key)}",
            params={
                "workspaceId": workspace_id,
                "environment": environment,
                "secretPath": path,
                "include_imports": "true",
            },
        )
        return Secret.from_dict(unwrap(response, "secret"))

    def get_secret_by_id(
        self,
        workspace_id: str,
        secret_id: str,
        environment: Optional[str] = None,
        path: Optional[str] = None,
    ) -> Secret:
        # The raw secrets endpoint addresses a secret by its name
        return self.get_secret_by_key(workspace_id, secret_id, environment, path)

    # --- Mutations ---

    @validate_args(
        InvalidInputError,
        workspace_id=REQUIRED,
        key=(bool, "Key and value are required fields"),
        value=(bool, "Key and value are required fields"),
    )
    def create_secret(
        self,
        workspace_id: str,
        key: str,
        value: str,
        environment: Optional[str] = None,
        path: Optional[str] = None,
        comment: Optional[str] = None,
        secret_type: Optional[str] = None,
    ) -> Secret:
        request = SecretCreateRequest(
            workspace_id=workspace_id,
            key=key,
            value=value,
            environment=environment,
            secret_path=path,
            comment=comment,
            type=secret_type,
        )
        logger.info(f"Creating secret {key} in Infisical (workspace: {workspace_id})")
        try:
            response = self.executor.request(
                "POST", f"/v3/secrets/raw/{_segment(key)}", body=request.to_body()
            )
        except GatewayError as e:
            logger.error(f"Failed to create secret {key}: {e}")
            raise

        logger.info(f"Successfully created secret {key}")
        return Secret.from_dict(unwrap(response, "secret"))

    @validate_args(
        InvalidInputError,
        workspace_id=REQUIRED,
        current_key=(bool, "Secret ID is required"),
        key=(bool, "Key and value are required fields"),
        value=(bool, "Key and value are required fields"),
    )
    def update_secret(
        self,
        workspace_id: str,
        current_key: str,
        key: str,
        value: str,
        environment: Optional[str] = None,
        path: Optional[str] = None,
        comment: Optional[str] = None,
        secret_type: Optional[str] = None,
    ) -> Secret:
        """
        Update the secret named current_key.

        If key differs from current_key the secret is renamed; the new name
        travels as newSecretName while the URL keeps the current one.
        """
        request = SecretUpdateRequest(
            workspace_id=workspace_id,
            current_key=current_key,
            key=key,
            value=value,
            environment=environment,
            secret_path=path,
            comment=comment,
            type=secret_type,
        )
        logger.info(f"Updating secret {current_key} in Infisical (workspace: {workspace_id})")
        try:
            response = self.executor.request(
                "PATCH",
                f"/v3/secrets/raw/{_segment(current_key)}",
                body=request.to_body(),
            )
        except GatewayError as e:
            logger.error(f"Failed to update secret {current_key}: {e}")
            raise

        logger.info(f"Successfully updated secret {key}")
        return Secret.from_dict(unwrap(response, "secret"))

    @validate_args(
        InvalidInputError,
        workspace_id=REQUIRED,
        secret_key=(bool, "Secret ID is required"),
        environment=(bool, "workspaceId and environment are required fields"),
    )
    def delete_secret(
        self,
        workspace_id: str,
        secret_key: str,
        environment: str,
        path: str = "/",
    ) -> None:
        request = SecretDeleteRequest(
            workspace_id=workspace_id, environment=environment, secret_path=path or "/"
        )
        logger.info(f"Deleting secret {secret_key} from Infisical (workspace: {workspace_id})")
        try:
            self.executor.request(
                "DELETE", f"/v3/secrets/raw/{_segment(secret_key)}", body=request.to_body()
            )
        except GatewayError as e:
            logger.error(f"Failed to delete secret {secret_key}: {e}")
            raise

        logger.info(f"Successfully deleted secret {secret_key}")
