"""Token authenticator - universal auth login with a single refresh in flight."""

import logging
import threading
import time
from typing import Callable, Optional

import httpx

from gateway.classifier import is_retryable_status
from gateway.credentials import CredentialStore
from gateway.errors import AuthenticationError
from gateway.models import TokenResponse
from monitoring import Metrics

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/v1/auth/universal-auth/login"

# Renew this long before the server would reject the token
SAFETY_MARGIN_SECONDS = 300


class TokenAuthenticator:
    """
    Obtains and refreshes access tokens for the client-credentials strategy.

    Concurrent callers that find the token invalid queue on one lock; the
    first performs the login, the rest re-check validity once it releases
    and return without logging in again. If that login failed, they raise
    the same failure instead of repeating it.

    Usage:
        auth = TokenAuthenticator(store, http, base_url)
        auth.ensure_valid_token()
        headers = {"Authorization": f"Bearer {store.bearer_token()}"}
    """

    def __init__(
        self,
        store: CredentialStore,
        http: httpx.Client,
        base_url: str,
        clock: Callable[[], float] = time.time,
        safety_margin_seconds: int = SAFETY_MARGIN_SECONDS,
    ):
        self.store = store
        self.http = http
        self.base_url = base_url
        self.clock = clock
        self.safety_margin_seconds = safety_margin_seconds
        self._refresh_lock = threading.Lock()
        # Bumped when a login attempt finishes
        self._attempts = 0
        self._last_error: Optional[AuthenticationError] = None

    def now_ms(self) -> float:
        return self.clock() * 1000

    def ensure_valid_token(self, now_ms: Optional[float] = None) -> None:
        """No-op for static tokens; otherwise log in when the token is missing or expired."""
        if not self.store.is_dynamic:
            return

        now_ms = self.now_ms() if now_ms is None else now_ms
        if self.store.is_token_valid(now_ms):
            return

        if self._refresh_lock.locked():
            logger.debug("Token refresh already in progress, waiting...")

        seen = self._attempts
        with self._refresh_lock:
            # Whoever held the lock may have just refreshed it
            if self.store.is_token_valid(now_ms):
                return
            if self._attempts != seen and self._last_error is not None:
                error = self._last_error
                raise AuthenticationError(
                    str(error), status=error.status, retryable=error.retryable
                ) from error
            logger.info("Access token expired or not present, refreshing...")
            self._login()

    def refresh(self) -> None:
        """Unconditionally perform a login exchange (serialized with other refreshes)."""
        if not self.store.is_dynamic:
            return
        with self._refresh_lock:
            self._login()

    def _login(self) -> None:
        """Exchange clientId/clientSecret for an access token. Caller holds the lock."""
        try:
            self._exchange()
        except AuthenticationError as e:
            self._last_error = e
            raise
        else:
            self._last_error = None
        finally:
            self._attempts += 1

    def _exchange(self) -> None:
        cred = self.store.credential
        url = f"{self.base_url}{LOGIN_PATH}"

        logger.info("Requesting access token using client credentials")

        try:
            response = self.http.post(
                url,
                json={"clientId": cred.client_id, "clientSecret": cred.client_secret},
                headers={"Accept": "application/json"},
            )
        except httpx.TransportError as e:
            Metrics.token_refresh(success=False)
            logger.error(f"Authentication failed: {e}")
            raise AuthenticationError(
                f"Failed to authenticate: {e}", retryable=True
            ) from e

        if not response.is_success:
            Metrics.token_refresh(success=False)
            logger.error(f"Authentication failed with status {response.status_code}")
            raise AuthenticationError(
                f"Failed to authenticate: {response.status_code} - {response.text}",
                status=response.status_code,
                retryable=is_retryable_status(response.status_code),
            )

        try:
            token = TokenResponse.from_dict(response.json())
        except (ValueError, KeyError, TypeError) as e:
            Metrics.token_refresh(success=False)
            raise AuthenticationError(f"Malformed login response: {e}") from e

        lifetime_seconds = token.expires_in - self.safety_margin_seconds
        self.store.set_access_token(
            token.access_token, self.now_ms() + lifetime_seconds * 1000
        )
        Metrics.token_refresh(success=True)
        logger.info(
            f"Successfully authenticated. Token expires in {lifetime_seconds / 60:.1f} minutes"
        )
