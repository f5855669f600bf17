"""
OIDC trust policies for federated role assumption.

A trust policy lets a CI job exchange its OIDC token for short-lived AWS
credentials. The identity provider accepts the token only when:

- the ``aud`` claim equals the configured audience (``StringEquals``), and
- the ``sub`` claim matches the configured subject pattern (``StringLike``).

``TrustPolicy`` renders that condition block for CDK and IAM, and evaluates
claims against it the same way STS does, so a pattern can be checked before it
is deployed.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from eksblueprint.constants import GITHUB_OIDC_ISSUER, STS_AUDIENCE

logger = logging.getLogger(__name__)

WEB_IDENTITY_ACTION = "sts:AssumeRoleWithWebIdentity"
POLICY_VERSION = "2012-10-17"

_WILDCARDS = ("*", "?")


def like_to_regex(pattern: str) -> "re.Pattern[str]":
    """
    Compile an IAM ``StringLike`` pattern.

    ``*`` matches any run of characters (including none), ``?`` matches exactly
    one character. Every other character is literal and case-sensitive.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def string_like(value: str, pattern: str) -> bool:
    return like_to_regex(pattern).fullmatch(value) is not None


def validate_subject_scope(pattern: Optional[str], repository: str) -> None:
    """
    Reject subject patterns that are not scoped to a single repository.

    Args:
        pattern: Subject pattern, e.g. ``repo:my-org/hello-eks:*``
        repository: ``owner/name`` the pattern must be scoped to

    Raises:
        ValueError: If the repository is malformed or the pattern is over-broad
    """
    owner, _, name = repository.partition("/")
    if not owner or not name or "/" in name:
        raise ValueError(f"github_repository must look like 'owner/name' (got {repository!r})")
    if any(w in repository for w in _WILDCARDS):
        raise ValueError(f"github_repository must not contain wildcards (got {repository!r})")

    prefix = f"repo:{repository}:"
    if not pattern or not pattern.startswith(prefix) or len(pattern) == len(prefix):
        raise ValueError(
            f"oidc_subject_pattern {pattern!r} is over-broad: it must start with {prefix!r} "
            "and name a ref, environment or wildcard after it"
        )


@dataclass
class TrustDecision:
    """Outcome of evaluating token claims against a trust policy."""
    allowed: bool
    reasons: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.allowed


@dataclass
class TrustPolicy:
    """
    Web identity trust relationship for a single federated principal.

    Attributes:
        issuer: OIDC issuer host without scheme (condition key prefix)
        provider_arn: ARN of the IAM OIDC provider for that issuer
        audience: Required ``aud`` claim
        subject_pattern: ``StringLike`` pattern for the ``sub`` claim
    """
    issuer: str
    provider_arn: str
    audience: str
    subject_pattern: str

    def __post_init__(self):
        for prefix in ("https://", "http://"):
            if self.issuer.startswith(prefix):
                self.issuer = self.issuer[len(prefix):]
        self.issuer = self.issuer.rstrip("/")

    @property
    def audience_key(self) -> str:
        return f"{self.issuer}:aud"

    @property
    def subject_key(self) -> str:
        return f"{self.issuer}:sub"

    def conditions(self) -> Dict[str, Dict[str, str]]:
        """Condition block shared by the CDK principal and the JSON document."""
        return {
            "StringEquals": {self.audience_key: self.audience},
            "StringLike": {self.subject_key: self.subject_pattern},
        }

    def to_document(self) -> Dict[str, Any]:
        return {
            "Version": POLICY_VERSION,
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"Federated": self.provider_arn},
                    "Action": WEB_IDENTITY_ACTION,
                    "Condition": self.conditions(),
                }
            ],
        }

    def evaluate(self, claims: Mapping[str, Any]) -> TrustDecision:
        """
        Evaluate OIDC token claims the way STS evaluates the trust policy.

        Args:
            claims: Decoded token claims (``sub``, ``aud`` and optionally ``iss``)

        Returns:
            TrustDecision, allowed only when every condition holds
        """
        reasons = []

        issuer_claim = claims.get("iss")
        if issuer_claim is not None:
            issuer_host = str(issuer_claim).split("://", 1)[-1].rstrip("/")
            if issuer_host != self.issuer:
                reasons.append(f"issuer {issuer_claim!r} does not match {self.issuer!r}")

        audience_claim = claims.get("aud")
        if audience_claim is None:
            reasons.append("token has no 'aud' claim")
        else:
            audiences = audience_claim if isinstance(audience_claim, (list, tuple)) else [audience_claim]
            if self.audience not in audiences:
                reasons.append(f"audience {audience_claim!r} does not equal {self.audience!r}")

        subject_claim = claims.get("sub")
        if subject_claim is None:
            reasons.append("token has no 'sub' claim")
        elif not string_like(str(subject_claim), self.subject_pattern):
            reasons.append(f"subject {subject_claim!r} does not match {self.subject_pattern!r}")

        decision = TrustDecision(allowed=not reasons, reasons=reasons)
        logger.debug(f"Trust evaluation for sub={subject_claim!r}: allowed={decision.allowed}")
        return decision


def github_provider_arn(account_id: str) -> str:
    return f"arn:aws:iam::{account_id}:oidc-provider/{GITHUB_OIDC_ISSUER}"


def github_actions_trust(
    provider_arn: str,
    repository: str,
    subject_pattern: Optional[str] = None,
    audience: str = STS_AUDIENCE,
) -> TrustPolicy:
    """
    Build the trust policy for GitHub Actions workflows of one repository.

    Args:
        provider_arn: ARN of the GitHub OIDC provider in the account
        repository: ``owner/name`` of the source repository
        subject_pattern: Subject pattern; defaults to every ref of the repository
        audience: Required audience

    Returns:
        TrustPolicy for the GitHub Actions issuer

    Raises:
        ValueError: If the pattern is not scoped to the repository
    """
    pattern = subject_pattern or f"repo:{repository}:*"
    validate_subject_scope(pattern, repository)
    return TrustPolicy(
        issuer=GITHUB_OIDC_ISSUER,
        provider_arn=provider_arn,
        audience=audience,
        subject_pattern=pattern,
    )
