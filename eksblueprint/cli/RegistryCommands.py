from __future__ import annotations

import boto3
import click
from botocore.exceptions import BotoCoreError, ClientError
from rich.table import Table

from eksblueprint.cli.shared import get_settings
from eksblueprint.CustomLogging import console
from eksblueprint.registry import ImageDetail, RetentionPolicy


def fetch_images(repository_name: str, region: str) -> list[ImageDetail]:
    """List every image in an ECR repository."""
    client = boto3.client('ecr', region_name=region)
    paginator = client.get_paginator('describe_images')
    images = []
    for page in paginator.paginate(repositoryName=repository_name):
        images.extend(ImageDetail.from_ecr(detail) for detail in page['imageDetails'])
    return images


@click.group(help="Container registry tools")
def registry():
    pass


@registry.command("retention-preview", help="Show which images the lifecycle policy would expire")
@click.option("--repository", default=None, help="Repository name (defaults to {project}-{environment})")
def retention_preview(repository: str | None):
    settings = get_settings()
    repository = repository or settings.repository_name
    policy = RetentionPolicy(
        max_image_count=settings.ecr_image_retention_count,
        untagged_expiry_days=settings.ecr_untagged_expiry_days,
    )

    try:
        images = fetch_images(repository, settings.region)
    except (BotoCoreError, ClientError) as e:
        raise click.ClickException(f"Could not list images in {repository}: {e}")

    result = policy.evaluate(images)

    table = Table(title=f"{repository}: keep {policy.max_image_count}, untagged expire after {policy.untagged_expiry_days}d")
    table.add_column("Digest")
    table.add_column("Tags")
    table.add_column("Pushed")
    table.add_column("Outcome")
    for image in result.retained:
        table.add_row(image.digest[:19], ", ".join(image.tags) or "<untagged>", image.pushed_at.isoformat(), "keep")
    for image in result.expired:
        table.add_row(image.digest[:19], ", ".join(image.tags) or "<untagged>", image.pushed_at.isoformat(),
                      f"expire ({result.expired_by[image.digest]})")
    console.print(table)
    click.echo(f"{len(result.retained)} retained, {len(result.expired)} expired")
