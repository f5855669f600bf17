import json
import click

from eksblueprint.cli.shared import get_settings
from eksblueprint.config.loader import ConfigLoader


@click.group(help="Inspect and validate deployment settings")
def config():
    pass


@config.command("show", help="Print the effective settings as JSON, with where each value came from")
def show():
    settings = get_settings(validate=False)
    loader = ConfigLoader()
    click.echo(json.dumps({
        "sources": loader.get_available_sources(),
        "origins": loader.describe_origins(),
        "settings": settings.to_dict(),
    }, indent=2))


@config.command("validate", help="Check every settings invariant; exits non-zero on violations")
def validate():
    settings = get_settings(validate=True)
    click.echo(
        f"Settings valid for {settings.project_name}/{settings.environment} "
        f"(cluster {settings.cluster_name}, nodes {settings.node_min_size}/"
        f"{settings.node_desired_size}/{settings.node_max_size})"
    )
