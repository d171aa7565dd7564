"""Request executor - the single chokepoint for every Infisical API call."""

import logging
import time
from typing import Any, Callable, Optional

import httpx

from gateway.auth import TokenAuthenticator
from gateway.classifier import classify_response, is_retryable_status
from gateway.credentials import CredentialStore
from gateway.errors import (
    AuthenticationError,
    TransientServiceError,
    UnclassifiedApiError,
)
from monitoring import Metrics, track_time

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0
BACKOFF_BASE = 2


def backoff_delay(attempt: int, initial_delay: float = RETRY_DELAY_SECONDS) -> float:
    """Delay before retry number attempt+1: 1s, 2s, 4s for the defaults."""
    return initial_delay * BACKOFF_BASE**attempt


def indicates_invalid_credentials(error: Exception) -> bool:
    return "invalid credentials" in str(error).lower()


def unwrap(data: Any, key: str) -> dict:
    """Return the named object of a JSON envelope such as {"secret": {...}}."""
    if not isinstance(data, dict) or not isinstance(data.get(key), dict):
        raise UnclassifiedApiError(f"Infisical API error: response has no '{key}' object")
    return data[key]


class RequestExecutor:
    """
    Applies auth, retry and backoff uniformly to every request.

    Each attempt makes sure the token is valid, sends the request and then
    either returns the parsed body, schedules a retry, or raises a classified
    error. Retries of one request run strictly one after another.

    Usage:
        executor = RequestExecutor(store, authenticator, http, base_url)
        data = executor.request("GET", "/v1/workspace/abc")
    """

    def __init__(
        self,
        store: CredentialStore,
        authenticator: TokenAuthenticator,
        http: httpx.Client,
        base_url: str,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.authenticator = authenticator
        self.http = http
        self.base_url = base_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.sleep = sleep

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def _headers(self, token: Optional[str]) -> dict:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _wait(self, attempt: int, reason: str, detail: str) -> None:
        delay = backoff_delay(attempt, self.retry_delay)
        logger.warning(
            f"{detail}, retrying in {delay:.1f}s "
            f"(attempt {attempt + 1}/{self.max_retries})"
        )
        Metrics.retry(reason)
        self.sleep(delay)

    def request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
        retry: bool = True,
    ) -> Any:
        """
        Perform a request with automatic retry and token refresh.

        Args:
            method: HTTP method
            path: Path below /api, e.g. /v3/secrets/raw
            body: Optional JSON body
            params: Query parameters; None values are dropped
            retry: Set False to surface the first failure

        Returns:
            Parsed JSON body, or None for 204 No Content

        Raises:
            ApiError: Classified non-OK response
            AuthenticationError: Login exchange failed
            TransientServiceError: Network failures outlasted the retries
            UnclassifiedApiError: Successful response whose body is not JSON
        """
        url = self.build_url(path)
        query = {k: v for k, v in (params or {}).items() if v is not None}

        for attempt in range(self.max_retries + 1):
            can_retry = retry and attempt < self.max_retries
            logger.debug(f"Making {method} request to {url}")

            try:
                self.authenticator.ensure_valid_token()
                token = self.store.bearer_token()
                with track_time() as t:
                    response = self.http.request(
                        method, url, params=query, json=body, headers=self._headers(token)
                    )
            except AuthenticationError as e:
                if can_retry and e.retryable and not indicates_invalid_credentials(e):
                    self._wait(attempt, "auth", f"Authentication failed: {e}")
                    continue
                raise
            except httpx.TransportError as e:
                Metrics.request(method, "error")
                if can_retry and not indicates_invalid_credentials(e):
                    self._wait(attempt, "network", f"Error calling Infisical API: {e}")
                    continue
                logger.error(f"Error calling Infisical API at {url}: {e}")
                raise TransientServiceError(
                    f"Error calling Infisical API: {e}"
                ) from e

            Metrics.request(method, response.status_code, latency=t["duration"])
            logger.debug(f"Received response with status {response.status_code} from {url}")

            if (
                response.status_code == 401
                and self.store.is_dynamic
                and can_retry
            ):
                # Another caller may already have replaced the rejected token
                self.store.expire_token(token)
                self._wait(
                    attempt, "unauthorized", "Received 401 Unauthorized, refreshing token"
                )
                continue

            if not response.is_success:
                error = classify_response(response)
                if can_retry and is_retryable_status(response.status_code):
                    self._wait(attempt, "status", f"Request failed: {error}")
                    continue
                logger.error(f"{method} {url} failed: {error}")
                raise error

            if response.status_code == 204 or not response.content:
                return None

            try:
                return response.json()
            except ValueError as e:
                logger.error(f"{method} {url} returned a body that is not JSON")
                raise UnclassifiedApiError(
                    f"Infisical API error ({response.status_code}): invalid JSON response",
                    status=response.status_code,
                ) from e
