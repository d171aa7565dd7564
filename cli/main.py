"""CLI for the Infisical gateway."""

import json
import sys
from pathlib import Path

import click

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv  # noqa: E402

load_dotenv(project_root / ".env")

from core.config.exceptions import ConfigError  # noqa: E402
from core.config.loader import ConfigLoader, mask_config  # noqa: E402
from core.utils.logging import setup_logging  # noqa: E402
from gateway import GatewayError, InfisicalGateway  # noqa: E402


def _fail(error: Exception) -> None:
    click.echo(f"Error: {error}", err=True)
    raise SystemExit(1)


def _gateway(ctx: click.Context) -> InfisicalGateway:
    """Build the gateway once per invocation and close it on exit."""
    if "gateway" not in ctx.obj:
        try:
            ctx.obj["gateway"] = ctx.with_resource(InfisicalGateway(ctx.obj["config"]))
        except GatewayError as e:
            _fail(e)
    return ctx.obj["gateway"]


def _workspace(ctx: click.Context, workspace: str) -> str:
    workspace = workspace or ctx.obj["config"]["infisical"].get("workspaceId")
    if not workspace:
        _fail("No workspace ID provided. Use --workspace or set INFISICAL_WORKSPACE_ID")
    return workspace


def _environment(ctx: click.Context, workspace: str, environment: str) -> str:
    """Explicit flag, else the pinned environment, else the first one in the project."""
    if environment:
        return environment
    pinned = ctx.obj["config"]["infisical"].get("environment")
    project = _gateway(ctx).get_environments(workspace)
    chosen = project.default_environment(pinned)
    if not chosen:
        _fail(f"Workspace '{project.name}' has no environments")
    return chosen


workspace_option = click.option("--workspace", "-w", default=None, help="Workspace ID")
environment_option = click.option(
    "--environment", "-e", default=None, help="Environment slug"
)
path_option = click.option("--path", "-p", default="/", help="Secret path")


@click.group()
@click.version_option(version="1.0.0", prog_name="infisical-gateway")
@click.option(
    "--config", "-c", "config_path", default=None, type=click.Path(), help="Config file"
)
@click.option("--base-url", default=None, help="Infisical base URL")
@click.option("--log-level", default="WARNING", help="Log level")
@click.option(
    "--log-format", type=click.Choice(["standard", "json"]), default="standard"
)
@click.option("--metrics-port", type=int, default=None, help="Expose Prometheus metrics")
@click.pass_context
def cli(ctx, config_path, base_url, log_level, log_format, metrics_port):
    """Infisical Gateway CLI - browse and edit workspace secrets."""
    setup_logging(level=log_level, format_style=log_format)

    try:
        config = ConfigLoader(config_path).load(
            overrides={"infisical": {"baseUrl": base_url}}
        )
    except ConfigError as e:
        _fail(e)

    if metrics_port:
        from monitoring import start_metrics_server

        start_metrics_server(port=metrics_port)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def config(ctx):
    """Show loaded configuration (credentials masked)."""
    click.echo(json.dumps(mask_config(ctx.obj["config"]), indent=2))


@cli.command()
@workspace_option
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def environments(ctx, workspace, as_json):
    """List environments of a workspace."""
    workspace = _workspace(ctx, workspace)
    try:
        project = _gateway(ctx).get_environments(workspace)
    except GatewayError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(project.to_dict(), indent=2))
        return

    click.echo(f"\n{'='*60}")
    click.echo(f"Workspace: {project.name}")
    click.echo(f"{'='*60}\n")
    for env in project.environments:
        click.echo(f"  • {env.slug} ({env.name})")


@cli.command()
@workspace_option
@environment_option
@path_option
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def secrets(ctx, workspace, environment, path, as_json):
    """List secrets and folders at a path."""
    workspace = _workspace(ctx, workspace)
    try:
        environment = _environment(ctx, workspace, environment)
        listing = _gateway(ctx).get_secrets(workspace, path=path, environment=environment)
    except GatewayError as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps(listing.to_dict(), indent=2))
        return

    click.echo(f"\n{'='*60}")
    click.echo(f"{environment}:{path}")
    click.echo(f"{'='*60}")

    click.echo(f"\nFolders ({len(listing.folders)}):")
    for folder in listing.folders:
        click.echo(f"  - {folder.name}/")

    click.echo(f"\nSecrets ({len(listing.secrets)}):")
    for secret in listing.secrets:
        marker = " (imported)" if secret.readonly else ""
        click.echo(f"  - {secret.key}{marker}")


@cli.command()
@click.argument("key")
@workspace_option
@environment_option
@path_option
@click.pass_context
def get(ctx, key, workspace, environment, path):
    """Show one secret, value included."""
    workspace = _workspace(ctx, workspace)
    try:
        environment = _environment(ctx, workspace, environment)
        secret = _gateway(ctx).get_secret_by_key(
            workspace, key, environment=environment, path=path
        )
    except GatewayError as e:
        _fail(e)

    click.echo(json.dumps(secret.to_dict(), indent=2))


@cli.command()
@click.argument("key")
@click.argument("value")
@workspace_option
@environment_option
@path_option
@click.option("--comment", default=None, help="Secret comment")
@click.pass_context
def create(ctx, key, value, workspace, environment, path, comment):
    """Create a secret."""
    workspace = _workspace(ctx, workspace)
    try:
        environment = _environment(ctx, workspace, environment)
        secret = _gateway(ctx).create_secret(
            workspace, key, value, environment=environment, path=path, comment=comment
        )
    except GatewayError as e:
        _fail(e)

    click.echo(f"✓ Created {secret.key}")


@cli.command()
@click.argument("key")
@click.argument("value")
@click.option("--new-key", default=None, help="Rename the secret")
@workspace_option
@environment_option
@path_option
@click.option("--comment", default=None, help="Secret comment")
@click.pass_context
def update(ctx, key, value, new_key, workspace, environment, path, comment):
    """Update (and optionally rename) a secret."""
    workspace = _workspace(ctx, workspace)
    try:
        environment = _environment(ctx, workspace, environment)
        secret = _gateway(ctx).update_secret(
            workspace,
            key,
            new_key or key,
            value,
            environment=environment,
            path=path,
            comment=comment,
        )
    except GatewayError as e:
        _fail(e)

    click.echo(f"✓ Updated {secret.key}")


@cli.command()
@click.argument("key")
@workspace_option
@environment_option
@path_option
@click.confirmation_option(prompt="Delete this secret?")
@click.pass_context
def delete(ctx, key, workspace, environment, path):
    """Delete a secret."""
    workspace = _workspace(ctx, workspace)
    try:
        environment = _environment(ctx, workspace, environment)
        _gateway(ctx).delete_secret(workspace, key, environment=environment, path=path)
    except GatewayError as e:
        _fail(e)

    click.echo(f"✓ Deleted {key}")


def main():
    """Entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
