"""Data model for Infisical resources and request envelopes."""

from dataclasses import asdict, dataclass, field
from typing import Optional

# Canonical field -> legacy spelling used by the browser-facing contract
DUAL_NAMES = {
    "key": "secretKey",
    "value": "secretValue",
    "comment": "secretComment",
}


def _compact(data: dict) -> dict:
    """Drop None values so optional fields are omitted from request bodies."""
    return {k: v for k, v in data.items() if v is not None}


@dataclass
class Secret:
    """A secret as returned by the API. readonly marks imported secrets."""

    id: str
    key: str
    value: str = ""
    type: Optional[str] = None
    comment: Optional[str] = None
    version: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    readonly: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Secret":
        """Build from an API payload, accepting either naming of each field."""
        return cls(
            id=data.get("id") or data.get("_id") or "",
            key=data.get("key") or data.get("secretKey") or "",
            value=data.get("value", data.get("secretValue", "")) or "",
            type=data.get("type"),
            comment=data.get("comment", data.get("secretComment")),
            version=data.get("version"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            readonly=bool(data.get("readonly", False)),
        )

    def to_dict(self, dual_names: bool = False) -> dict:
        """
        Serialize with camelCase timestamps.

        Args:
            dual_names: Also emit secretKey/secretValue/secretComment
        """
        data = {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "comment": self.comment,
            "version": self.version,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "readonly": self.readonly,
        }
        if dual_names:
            for canonical, legacy in DUAL_NAMES.items():
                data[legacy] = data[canonical]
        return data


@dataclass
class Folder:
    """A folder node; the tree is linked through parent_id."""

    id: str
    name: str
    version: Optional[int] = None
    parent_id: Optional[str] = None
    is_reserved: bool = False
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Folder":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            version=data.get("version"),
            parent_id=data.get("parentId"),
            is_reserved=bool(data.get("isReserved", False)),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "parentId": self.parent_id,
            "isReserved": self.is_reserved,
            "description": self.description,
        }


@dataclass
class Environment:
    """A deployment stage; slug is what the API expects in later calls."""

    id: str
    name: str
    slug: str

    @classmethod
    def from_dict(cls, data: dict) -> "Environment":
        return cls(id=data.get("id", ""), name=data.get("name", ""), slug=data["slug"])

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Project:
    """Workspace with its environments, in API order."""

    id: str
    name: str
    slug: str = ""
    environments: list[Environment] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        return cls(
            id=data.get("id") or data.get("_id") or "",
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            environments=[
                Environment.from_dict(env) for env in data.get("environments") or []
            ],
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "environments": [env.to_dict() for env in self.environments],
        }

    def default_environment(self, pinned: Optional[str] = None) -> Optional[str]:
        """
        Pick the environment slug a consumer should start with.

        The pinned slug wins when the project has it; otherwise the first
        environment in API order. None for a project without environments.
        """
        slugs = [env.slug for env in self.environments]
        if pinned and pinned in slugs:
            return pinned
        return slugs[0] if slugs else None


@dataclass
class SecretsListing:
    """Secrets (native first, then imported) and folders for one path."""

    secrets: list[Secret] = field(default_factory=list)
    folders: list[Folder] = field(default_factory=list)

    def to_dict(self, dual_names: bool = False) -> dict:
        return {
            "secrets": [s.to_dict(dual_names=dual_names) for s in self.secrets],
            "folders": [f.to_dict() for f in self.folders],
        }


@dataclass
class TokenResponse:
    """Universal auth login result."""

    access_token: str
    expires_in: int
    access_token_max_ttl: Optional[int] = None
    token_type: str = "Bearer"

    @classmethod
    def from_dict(cls, data: dict) -> "TokenResponse":
        return cls(
            access_token=data["accessToken"],
            expires_in=int(data["expiresIn"]),
            access_token_max_ttl=data.get("accessTokenMaxTTL"),
            token_type=data.get("tokenType", "Bearer"),
        )


# ============================================================
# REQUEST ENVELOPES
# ============================================================


@dataclass
class SecretCreateRequest:
    """POST /v3/secrets/raw/{key}"""

    workspace_id: str
    key: str
    value: str
    environment: Optional[str] = None
    secret_path: Optional[str] = None
    comment: Optional[str] = None
    type: Optional[str] = None

    def to_body(self) -> dict:
        return _compact(
            {
                "workspaceId": self.workspace_id,
                "environment": self.environment,
                "secretPath": self.secret_path,
                "secretKey": self.key,
                "secretValue": self.value,
                "secretComment": self.comment,
                "type": self.type,
            }
        )


@dataclass
class SecretUpdateRequest:
    """
    PATCH /v3/secrets/raw/{current_key}

    current_key identifies the secret; key is the name it should have
    afterwards. A rename is sent as newSecretName.
    """

    workspace_id: str
    current_key: str
    key: str
    value: str
    environment: Optional[str] = None
    secret_path: Optional[str] = None
    comment: Optional[str] = None
    type: Optional[str] = None

    @property
    def new_secret_name(self) -> Optional[str]:
        return self.key if self.key != self.current_key else None

    def to_body(self) -> dict:
        return _compact(
            {
                "workspaceId": self.workspace_id,
                "environment": self.environment,
                "secretPath": self.secret_path,
                "secretValue": self.value,
                "secretComment": self.comment,
                "type": self.type,
                "newSecretName": self.new_secret_name,
            }
        )


@dataclass
class SecretDeleteRequest:
    """DELETE /v3/secrets/raw/{key}"""

    workspace_id: str
    environment: str
    secret_path: str = "/"

    def to_body(self) -> dict:
        return {
            "workspaceId": self.workspace_id,
            "environment": self.environment,
            "secretPath": self.secret_path,
        }
