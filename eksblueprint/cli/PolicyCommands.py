from __future__ import annotations

import json
import logging
import sys

import boto3
import click
from botocore.exceptions import BotoCoreError, ClientError

from eksblueprint.cli.shared import get_settings
from eksblueprint.constants import GITHUB_OIDC_ISSUER
from eksblueprint.trust import TrustPolicy, github_actions_trust, github_provider_arn

logger = logging.getLogger(__name__)


def _resolve_provider_arn(settings, account_id: str | None) -> str:
    if settings.github_oidc_provider_arn:
        return settings.github_oidc_provider_arn
    if not account_id:
        try:
            account_id = boto3.client('sts').get_caller_identity()['Account']
        except (BotoCoreError, ClientError) as e:
            raise click.ClickException(
                f"Could not determine AWS account id ({e}); pass --account-id"
            )
    return github_provider_arn(account_id)


def _build_trust(account_id: str | None) -> TrustPolicy:
    settings = get_settings()
    return github_actions_trust(
        provider_arn=_resolve_provider_arn(settings, account_id),
        repository=settings.github_repository,
        subject_pattern=settings.oidc_subject_pattern,
        audience=settings.oidc_audience,
    )


@click.group(help="GitHub OIDC trust policy tools")
def policy():
    pass


@policy.command("trust-document", help="Print the deploy role trust policy as JSON")
@click.option("--account-id", default=None, help="AWS account id (looked up via STS when omitted)")
def trust_document(account_id: str | None):
    click.echo(json.dumps(_build_trust(account_id).to_document(), indent=2))


@policy.command("check", help="Evaluate token claims against the trust policy; exits 1 when denied")
@click.option("--subject", required=True, help="Token 'sub' claim, e.g. repo:my-org/hello-eks:ref:refs/heads/main")
@click.option("--audience", default=None, help="Token 'aud' claim (defaults to the configured audience)")
@click.option("--issuer", default=f"https://{GITHUB_OIDC_ISSUER}", show_default=True, help="Token 'iss' claim")
@click.option("--account-id", default="000000000000", show_default=True,
              help="Account id used to build the provider ARN (does not affect the decision)")
def check(subject: str, audience: str | None, issuer: str, account_id: str):
    trust = _build_trust(account_id)
    claims = {"sub": subject, "aud": audience or trust.audience, "iss": issuer}
    decision = trust.evaluate(claims)

    if decision.allowed:
        click.echo(f"ALLOWED: {subject} may assume the deploy role")
        return
    click.echo(f"DENIED: {subject}", err=True)
    for reason in decision.reasons:
        click.echo(f"  - {reason}", err=True)
    sys.exit(1)
