"""Credential store - holds exactly one authentication strategy per client."""

import logging
import threading
from dataclasses import dataclass
from typing import Optional, Union

from gateway.errors import ConfigurationError

logger = logging.getLogger(__name__)

STATIC_TOKEN = "static-token"
CLIENT_CREDENTIALS = "client-credentials"


@dataclass(frozen=True)
class StaticTokenCredential:
    """Long-lived token sent as-is."""

    token: str
    kind: str = STATIC_TOKEN


@dataclass
class ClientCredentials:
    """
    Universal auth machine identity.

    access_token and expires_at_ms are either both unset or both set.
    """

    client_id: str
    client_secret: str
    access_token: Optional[str] = None
    expires_at_ms: Optional[float] = None
    kind: str = CLIENT_CREDENTIALS


Credential = Union[StaticTokenCredential, ClientCredentials]


class CredentialStore:
    """
    Owns the credential of one gateway instance.

    Only the token authenticator writes the access token and expiry, through
    set_access_token() and expire_token().

    Usage:
        store = CredentialStore.from_config(config)
        store.current_strategy()   # "static-token" or "client-credentials"
    """

    def __init__(self, credential: Credential):
        self._credential = credential
        self._guard = threading.Lock()

    @classmethod
    def from_config(cls, config: dict) -> "CredentialStore":
        """
        Select the strategy from an `infisical` config block.

        Raises:
            ConfigurationError: No strategy, both strategies, or a partial
                universalAuth pair.
        """
        infisical = config.get("infisical")
        if not isinstance(infisical, dict):
            raise ConfigurationError("Missing 'infisical' configuration section")

        auth = infisical.get("authentication") or {}
        token = (auth.get("auth_token") or {}).get("token") or None
        universal = auth.get("universalAuth") or {}
        client_id = universal.get("clientId") or None
        client_secret = universal.get("clientSecret") or None

        if token and (client_id or client_secret):
            raise ConfigurationError(
                "Both auth_token and universalAuth are configured. "
                "Configure exactly one on your infisical.authentication settings."
            )

        if token:
            return cls(StaticTokenCredential(token=token))

        if client_id and client_secret:
            return cls(ClientCredentials(client_id=client_id, client_secret=client_secret))

        if client_id or client_secret:
            raise ConfigurationError(
                "universalAuth requires both clientId and clientSecret"
            )

        raise ConfigurationError(
            "Missing Infisical Authentication credentials. Configure either "
            "auth_token or universalAuth on your infisical.authentication settings."
        )

    def current_strategy(self) -> str:
        return self._credential.kind

    @property
    def is_dynamic(self) -> bool:
        return self._credential.kind == CLIENT_CREDENTIALS

    @property
    def credential(self) -> Credential:
        return self._credential

    def is_token_valid(self, now_ms: float) -> bool:
        """True iff an access token is present and now is before its expiry."""
        if not self.is_dynamic:
            return True
        with self._guard:
            cred = self._credential
            return (
                cred.access_token is not None
                and cred.expires_at_ms is not None
                and now_ms < cred.expires_at_ms
            )

    def bearer_token(self) -> Optional[str]:
        """The token for the Authorization header, None before the first login."""
        if not self.is_dynamic:
            return self._credential.token
        with self._guard:
            return self._credential.access_token

    def set_access_token(self, access_token: str, expires_at_ms: float) -> None:
        with self._guard:
            self._credential.access_token = access_token
            self._credential.expires_at_ms = expires_at_ms

    def expire_token(self, rejected: Optional[str] = None) -> None:
        """
        Keep the token but move its expiry into the past.

        Args:
            rejected: Only expire if this is still the stored token
        """
        if not self.is_dynamic:
            return
        with self._guard:
            current = self._credential.access_token
            if current is not None and (rejected is None or rejected == current):
                self._credential.expires_at_ms = 0
