"""Resource aggregator - combines native secrets, imported secrets and folders."""

import logging
from typing import Optional

from gateway.errors import UnclassifiedApiError
from gateway.executor import RequestExecutor, unwrap
from gateway.models import Folder, Project, Secret, SecretsListing

logger = logging.getLogger(__name__)


def flatten_imports(secrets_response: Optional[dict]) -> list[Secret]:
    """
    Flatten every imports[].secrets block into one list, in API order.

    Every imported secret is marked readonly, whatever the API says.
    """
    imported = []
    for block in (secrets_response or {}).get("imports") or []:
        for raw in block.get("secrets") or []:
            secret = Secret.from_dict(raw)
            secret.readonly = True
            imported.append(secret)
    return imported


class ResourceAggregator:
    """
    Builds the per-path view of a workspace.

    Secrets and folders come from two independent calls. Native secrets keep
    API order and imported secrets follow them; secrets sharing a key are all
    kept.

    Usage:
        aggregator = ResourceAggregator(executor)
        listing = aggregator.get_secrets("ws-1", path="/api", environment="dev")
    """

    def __init__(self, executor: RequestExecutor):
        self.executor = executor

    def get_secrets(
        self,
        workspace_id: str,
        path: Optional[str] = None,
        environment: Optional[str] = None,
    ) -> SecretsListing:
        secrets_response = self.executor.request(
            "GET",
            "/v3/secrets/raw",
            params={
                "workspaceId": workspace_id,
                "environment": environment,
                "include_imports": "true",
                "secretPath": path,
                "viewSecretValue": "false",
            },
        )

        folders_response = self.executor.request(
            "GET",
            "/v1/folders",
            params={
                "workspaceId": workspace_id,
                "environment": environment,
                "include_imports": "true",
                "path": path,
            },
        )

        native = [Secret.from_dict(s) for s in (secrets_response or {}).get("secrets") or []]
        imported = flatten_imports(secrets_response)
        folders = [Folder.from_dict(f) for f in (folders_response or {}).get("folders") or []]

        logger.info(
            f"Fetched {len(native)} secrets and {len(imported)} imported secrets"
        )
        return SecretsListing(secrets=native + imported, folders=folders)

    def get_environments(self, workspace_id: str) -> Project:
        """Workspace name and environments, unfiltered and in API order."""
        response = self.executor.request("GET", f"/v1/workspace/{workspace_id}")
        workspace = unwrap(response, "workspace")
        try:
            project = Project.from_dict(workspace)
        except KeyError as e:
            raise UnclassifiedApiError(
                f"Infisical API error: workspace environment without {e}"
            ) from e
        logger.info(f"Fetched project with {len(project.environments)} environments")
        return project
