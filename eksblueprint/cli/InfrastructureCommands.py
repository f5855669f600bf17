from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path

import click

from eksblueprint.cli.shared import get_settings
from eksblueprint.errors import OutputDiscoveryError
from eksblueprint.outputs import StackOutputDiscovery

logger = logging.getLogger(__name__)

# Only present when running from a source checkout
SOURCE_APP_DIR = Path(__file__).resolve().parents[2] / "infrastructure"


def find_app_dir() -> Path:
    """Locate the CDK app: ./infrastructure, the working directory, then the source checkout."""
    candidates = [Path.cwd() / "infrastructure", Path.cwd(), SOURCE_APP_DIR]
    for candidate in candidates:
        if (candidate / "cdk.json").is_file():
            return candidate
    raise click.ClickException(
        "No cdk.json found in ./infrastructure or the current directory; pass --app-dir"
    )


@click.group(help="Provisioned infrastructure")
def infra():
    pass


@infra.command("outputs", help="Show cluster name, registry URL and role ARNs of the deployed stacks")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def outputs(as_json: bool):
    settings = get_settings()
    try:
        results = StackOutputDiscovery(settings.region).discover(settings)
    except OutputDiscoveryError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(results, indent=2, sort_keys=True))
        return
    if not results:
        click.echo(f"No stacks deployed for {settings.project_name}/{settings.environment}")
        return
    for key in sorted(results):
        click.echo(f"{key}: {results[key]}")


@infra.command("destroy", help="Destroy every blueprint stack with `cdk destroy --all`")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.option("--app-dir", type=click.Path(file_okay=False, exists=True), default=None,
              help="Directory containing cdk.json (default: ./infrastructure or the current directory)")
def destroy(yes: bool, app_dir: str | None):
    settings = get_settings()
    app_dir = app_dir or str(find_app_dir())
    if not yes:
        click.confirm(
            f"Destroy all stacks for {settings.project_name}/{settings.environment}? "
            "The ECR repository is retained.",
            abort=True,
        )

    logger.info(f"Destroying stacks from {app_dir}")
    result = subprocess.run(["npx", "cdk", "destroy", "--all", "--force"], cwd=app_dir)
    if result.returncode != 0:
        raise click.ClickException(f"cdk destroy failed with exit code {result.returncode}")
    click.echo("Cleanup complete")
