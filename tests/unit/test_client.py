"""Unit tests for the InfisicalGateway facade."""

import httpx
import pytest

from core.config.loader import ConfigLoader
from fakes import BASE_URL, token_config
from gateway import (
    ConfigurationError,
    ConflictError,
    GatewayError,
    InfisicalGateway,
    InvalidInputError,
    NotFoundError,
    UnclassifiedApiError,
)
from gateway.client import _segment

SCOPE = ("ws-1", "dev", "/")


@pytest.fixture
def workspace(fake):
    fake.workspaces["ws-1"] = {
        "id": "ws-1",
        "name": "Shop",
        "environments": [
            {"id": "e1", "name": "Development", "slug": "dev"},
            {"id": "e2", "name": "Production", "slug": "prod"},
        ],
    }
    return "ws-1"


class TestConstruction:
    """Tests for gateway construction."""

    def test_missing_credentials_fail_before_network(self, fake):
        with pytest.raises(ConfigurationError):
            InfisicalGateway({"infisical": {"baseUrl": BASE_URL}}, transport=fake.transport)

        assert fake.requests == []

    def test_base_url_trailing_slash(self, make_gateway):
        gateway = make_gateway(token_config(baseUrl=BASE_URL + "/"))

        assert gateway.base_url == BASE_URL
        assert gateway.executor.build_url("/v1/folders") == f"{BASE_URL}/api/v1/folders"

    def test_context_manager_closes_client(self, fake):
        with InfisicalGateway(token_config(), transport=fake.transport) as gateway:
            pass

        assert gateway._http.is_closed

    def test_segment_encodes_key(self):
        assert _segment("a/b c") == "a%2Fb%20c"


class TestValidation:
    """Required arguments are checked before any request."""

    def test_get_secrets_requires_workspace(self, make_gateway, fake):
        gateway = make_gateway()

        with pytest.raises(InvalidInputError, match="workspaceId is required"):
            gateway.get_secrets("")

        assert fake.requests == []

    def test_get_environments_requires_workspace(self, make_gateway):
        with pytest.raises(InvalidInputError):
            make_gateway().get_environments(None)

    def test_create_requires_value(self, make_gateway, fake):
        with pytest.raises(InvalidInputError, match="Key and value are required"):
            make_gateway().create_secret("ws-1", "A", "", environment="dev")

        assert fake.requests == []

    def test_update_requires_current_key(self, make_gateway):
        with pytest.raises(InvalidInputError, match="Secret ID is required"):
            make_gateway().update_secret("ws-1", "", "A", "x")

    def test_delete_requires_environment(self, make_gateway):
        with pytest.raises(InvalidInputError, match="environment"):
            make_gateway().delete_secret("ws-1", "A", environment="")


class TestListing:
    """Tests for get_secrets and get_environments."""

    def test_get_secrets(self, make_gateway, fake):
        fake.add_secret(*SCOPE, "A", "1")
        fake.imports[SCOPE] = [{"secrets": [{"secretKey": "B", "secretValue": "2"}]}]
        gateway = make_gateway()

        listing = gateway.get_secrets("ws-1", path="/", environment="dev")

        assert [(s.key, s.readonly) for s in listing.secrets] == [("A", False), ("B", True)]

    def test_get_environments_idempotent(self, make_gateway, workspace):
        gateway = make_gateway()

        first = gateway.get_environments(workspace)
        second = gateway.get_environments(workspace)

        assert first == second
        assert [env.slug for env in first.environments] == ["dev", "prod"]

    def test_unknown_workspace(self, make_gateway, fake):
        with pytest.raises(NotFoundError) as exc_info:
            make_gateway().get_environments("missing")

        assert exc_info.value.status == 404


class TestSingleSecret:
    """Tests for single-secret reads and mutations."""

    def test_create_then_get(self, make_gateway, fake):
        """A created secret can be read back by key."""
        # Arrange
        gateway = make_gateway()

        # Act
        created = gateway.create_secret(
            "ws-1", "API_KEY", "s3cret", environment="dev", path="/", comment="vendor"
        )
        fetched = gateway.get_secret_by_key("ws-1", "API_KEY", environment="dev", path="/")

        # Assert
        assert created.key == fetched.key == "API_KEY"
        assert fetched.value == "s3cret"
        assert fetched.comment == "vendor"
        assert fetched.readonly is False

    def test_create_body(self, make_gateway, fake):
        gateway = make_gateway()

        gateway.create_secret("ws-1", "A", "x", environment="dev", path="/")

        request = fake.calls("POST", "/api/v3/secrets/raw/A")[0]
        assert b'"secretKey"' in request.content
        assert b'"secretComment"' not in request.content

    def test_create_duplicate_conflicts(self, make_gateway, fake, sleeps):
        fake.add_secret(*SCOPE, "A", "1")

        with pytest.raises(ConflictError):
            make_gateway().create_secret("ws-1", "A", "2", environment="dev", path="/")

        assert sleeps == []

    def test_get_by_id(self, make_gateway, fake):
        fake.add_secret(*SCOPE, "A", "1")

        secret = make_gateway().get_secret_by_id("ws-1", "A", environment="dev", path="/")

        assert secret.id == "id-A"

    def test_get_missing(self, make_gateway, fake):
        with pytest.raises(NotFoundError):
            make_gateway().get_secret_by_key("ws-1", "NOPE", environment="dev", path="/")

    def test_update_value(self, make_gateway, fake):
        fake.add_secret(*SCOPE, "A", "1")
        gateway = make_gateway()

        updated = gateway.update_secret("ws-1", "A", "A", "2", environment="dev", path="/")

        assert updated.value == "2"
        assert updated.version == 2
        assert b"newSecretName" not in fake.calls("PATCH")[0].content

    def test_update_rename(self, make_gateway, fake):
        """Renaming keeps the old key in the URL and sends newSecretName."""
        fake.add_secret(*SCOPE, "OLD", "1")
        gateway = make_gateway()

        renamed = gateway.update_secret("ws-1", "OLD", "NEW", "1", environment="dev", path="/")

        assert renamed.key == "NEW"
        assert fake.calls("PATCH")[0].url.path == "/api/v3/secrets/raw/OLD"
        with pytest.raises(NotFoundError):
            gateway.get_secret_by_key("ws-1", "OLD", environment="dev", path="/")

    def test_delete(self, make_gateway, fake):
        fake.add_secret(*SCOPE, "A", "1")
        gateway = make_gateway()

        assert gateway.delete_secret("ws-1", "A", environment="dev") is None

        assert "A" not in fake.secrets[SCOPE]
        with pytest.raises(NotFoundError):
            gateway.delete_secret("ws-1", "A", environment="dev")


class TestDualNames:
    """Secrets serialize with both field spellings on request."""

    def test_listing_dual_names(self, make_gateway, fake):
        fake.add_secret(*SCOPE, "A", "1")

        data = make_gateway().get_secrets("ws-1", path="/", environment="dev").to_dict(
            dual_names=True
        )

        secret = data["secrets"][0]
        assert secret["key"] == secret["secretKey"] == "A"


class TestMalformedResponses:
    """Successful responses that cannot be read still raise gateway errors."""

    def test_environments_maintenance_page(self, make_gateway, fake):
        fake.fail(
            "GET",
            "/api/v1/workspace/ws-1",
            httpx.Response(200, text="<html>maintenance</html>"),
        )

        with pytest.raises(GatewayError) as exc_info:
            make_gateway().get_environments("ws-1")

        assert isinstance(exc_info.value, UnclassifiedApiError)

    def test_environments_without_workspace(self, make_gateway, fake):
        fake.fail("GET", "/api/v1/workspace/ws-1", httpx.Response(200, json={}))

        with pytest.raises(UnclassifiedApiError, match="no 'workspace' object"):
            make_gateway().get_environments("ws-1")

    def test_environment_without_slug(self, make_gateway, fake):
        fake.workspaces["ws-1"] = {"id": "ws-1", "environments": [{"name": "dev"}]}

        with pytest.raises(UnclassifiedApiError, match="slug"):
            make_gateway().get_environments("ws-1")

    def test_secret_without_envelope(self, make_gateway, fake):
        fake.fail("GET", "/api/v3/secrets/raw/A", httpx.Response(200, json={"ok": True}))

        with pytest.raises(UnclassifiedApiError, match="no 'secret' object"):
            make_gateway().get_secret_by_key("ws-1", "A", environment="dev", path="/")


class TestNumericSettings:
    """Numeric settings may arrive as strings from ${VAR} resolution."""

    def test_settings_from_environment(self, make_gateway, tmp_path, monkeypatch):
        # Arrange
        path = tmp_path / "gateway.yaml"
        path.write_text(
            """
infisical:
  timeout: ${GATEWAY_TIMEOUT}
  retry:
    maxRetries: ${GATEWAY_RETRIES}
    initialDelayMs: ${GATEWAY_DELAY}
"""
        )
        monkeypatch.setenv("GATEWAY_TIMEOUT", "12.5")
        monkeypatch.setenv("GATEWAY_RETRIES", "2")
        monkeypatch.setenv("GATEWAY_DELAY", "500")
        config = ConfigLoader(path).load(overrides=token_config())

        # Act
        gateway = make_gateway(config)

        # Assert
        assert gateway.executor.retry_delay == 0.5
        assert gateway.executor.max_retries == 2
        assert gateway._http.timeout.read == 12.5

    def test_null_and_empty_use_defaults(self, make_gateway):
        gateway = make_gateway(
            token_config(timeout=None, retry={"maxRetries": "", "initialDelayMs": None})
        )

        assert gateway._http.timeout.read == 30
        assert gateway.executor.max_retries == 3
        assert gateway.executor.retry_delay == 1.0

    def test_non_numeric_setting(self, fake):
        config = token_config(retry={"initialDelayMs": "soon"})

        with pytest.raises(ConfigurationError, match="initialDelayMs"):
            InfisicalGateway(config, transport=fake.transport)
