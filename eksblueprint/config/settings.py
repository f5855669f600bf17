"""
Typed deployment settings.

``BlueprintSettings`` is the flat set of named variables consumed at deploy
time by the CDK app, the CLI and the HTTP service. Values come from environment
variables (populated from YAML by ``ConfigLoader``) and fall back to defaults.
"""

import ipaddress
import os
import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional

from eksblueprint import __version__
from eksblueprint.constants import (
    DEFAULT_REGION,
    KUBECTL_VERSION,
    STS_AUDIENCE,
    SUPPORTED_CLUSTER_VERSIONS,
)
from eksblueprint.errors import ConfigurationError
from eksblueprint.naming import get_cluster_name, get_repository_name
from eksblueprint.trust import validate_subject_scope

TAG_MUTABILITY_CHOICES = ("MUTABLE", "IMMUTABLE")
SEVERITY_CHOICES = ("UNKNOWN", "LOW", "MEDIUM", "HIGH", "CRITICAL")

_NAME_RE = re.compile(r"^[a-z][a-z0-9-]{0,30}$")
_TRUE_VALUES = ("1", "true", "yes", "on")


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class BlueprintSettings:
    """Deployment settings with defaults for every variable."""

    region: str = DEFAULT_REGION
    project_name: str = "hello-eks"
    environment: str = "dev"

    vpc_cidr: str = "10.0.0.0/16"
    max_azs: int = 2
    nat_gateways: int = 1

    cluster_version: str = "1.29"
    node_instance_types: List[str] = field(default_factory=lambda: ["t3.medium"])
    node_min_size: int = 1
    node_desired_size: int = 2
    node_max_size: int = 3
    node_disk_size: int = 20

    ecr_image_retention_count: int = 10
    ecr_untagged_expiry_days: int = 1
    ecr_image_tag_mutability: str = "MUTABLE"
    ecr_scan_on_push: bool = True

    github_repository: str = "my-org/hello-eks"
    oidc_subject_pattern: Optional[str] = None
    oidc_audience: str = STS_AUDIENCE
    github_oidc_provider_arn: Optional[str] = None

    app_message: str = "Hello from EKS!"
    app_version: str = __version__
    app_port: int = 3000
    app_replicas: int = 2

    scan_severity_threshold: str = "HIGH"

    # Environment variable name -> (field name, parser)
    ENV_FIELDS = {
        'AWS_REGION': ('region', str),
        'PROJECT_NAME': ('project_name', str),
        'ENVIRONMENT': ('environment', str),
        'VPC_CIDR': ('vpc_cidr', str),
        'MAX_AZS': ('max_azs', int),
        'NAT_GATEWAYS': ('nat_gateways', int),
        'CLUSTER_VERSION': ('cluster_version', str),
        'NODE_INSTANCE_TYPES': ('node_instance_types', _parse_list),
        'NODE_MIN_SIZE': ('node_min_size', int),
        'NODE_DESIRED_SIZE': ('node_desired_size', int),
        'NODE_MAX_SIZE': ('node_max_size', int),
        'NODE_DISK_SIZE': ('node_disk_size', int),
        'ECR_IMAGE_RETENTION_COUNT': ('ecr_image_retention_count', int),
        'ECR_UNTAGGED_EXPIRY_DAYS': ('ecr_untagged_expiry_days', int),
        'ECR_IMAGE_TAG_MUTABILITY': ('ecr_image_tag_mutability', str.upper),
        'ECR_SCAN_ON_PUSH': ('ecr_scan_on_push', _parse_bool),
        'GITHUB_REPOSITORY': ('github_repository', str),
        'OIDC_SUBJECT_PATTERN': ('oidc_subject_pattern', str),
        'OIDC_AUDIENCE': ('oidc_audience', str),
        'GITHUB_OIDC_PROVIDER_ARN': ('github_oidc_provider_arn', str),
        'APP_MESSAGE': ('app_message', str),
        'APP_VERSION': ('app_version', str),
        'APP_PORT': ('app_port', int),
        'APP_REPLICAS': ('app_replicas', int),
        'SCAN_SEVERITY_THRESHOLD': ('scan_severity_threshold', str.upper),
    }

    def __post_init__(self):
        if not self.oidc_subject_pattern:
            self.oidc_subject_pattern = f"repo:{self.github_repository}:*"

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> "BlueprintSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings with unset variables left at their defaults

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        for env_var, (field_name, parser) in cls.ENV_FIELDS.items():
            raw = environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                values[field_name] = parser(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_var}: {raw!r} ({e})") from e

        return cls(**values)

    @property
    def cluster_name(self) -> str:
        return get_cluster_name(self.project_name, self.environment)

    @property
    def repository_name(self) -> str:
        return get_repository_name(self.project_name, self.environment)

    def validate(self) -> "BlueprintSettings":
        """
        Check every invariant and raise on the first batch of violations.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: Listing every violated invariant
        """
        errors = []

        if not _NAME_RE.match(self.project_name):
            errors.append(
                f"project_name must be lowercase alphanumeric with dashes (got {self.project_name!r})"
            )
        if not _NAME_RE.match(self.environment):
            errors.append(
                f"environment must be lowercase alphanumeric with dashes (got {self.environment!r})"
            )

        try:
            network = ipaddress.IPv4Network(self.vpc_cidr)
            if not 16 <= network.prefixlen <= 24:
                errors.append(f"vpc_cidr prefix must be between /16 and /24 (got /{network.prefixlen})")
        except ValueError as e:
            errors.append(f"vpc_cidr is not a valid IPv4 network: {e}")

        if self.max_azs < 2:
            errors.append(f"max_azs must be at least 2 for EKS (got {self.max_azs})")
        if not 1 <= self.nat_gateways <= self.max_azs:
            errors.append(f"nat_gateways must be between 1 and max_azs (got {self.nat_gateways})")

        if self.cluster_version not in SUPPORTED_CLUSTER_VERSIONS:
            errors.append(
                f"cluster_version must be one of {SUPPORTED_CLUSTER_VERSIONS} to stay within "
                f"kubectl {KUBECTL_VERSION} version skew (got {self.cluster_version!r})"
            )
        if not self.node_instance_types:
            errors.append("node_instance_types must name at least one instance type")
        if self.node_min_size < 0:
            errors.append(f"node_min_size must be >= 0 (got {self.node_min_size})")
        if self.node_max_size < 1:
            errors.append(f"node_max_size must be >= 1 (got {self.node_max_size})")
        if not self.node_min_size <= self.node_desired_size <= self.node_max_size:
            errors.append(
                "node group sizes must satisfy min <= desired <= max "
                f"(got {self.node_min_size} <= {self.node_desired_size} <= {self.node_max_size})"
            )
        if self.node_disk_size < 1:
            errors.append(f"node_disk_size must be >= 1 GiB (got {self.node_disk_size})")

        if self.ecr_image_retention_count < 1:
            errors.append(
                f"ecr_image_retention_count must keep at least 1 image (got {self.ecr_image_retention_count})"
            )
        if self.ecr_untagged_expiry_days < 1:
            errors.append(f"ecr_untagged_expiry_days must be >= 1 (got {self.ecr_untagged_expiry_days})")
        if self.ecr_image_tag_mutability not in TAG_MUTABILITY_CHOICES:
            errors.append(
                f"ecr_image_tag_mutability must be one of {TAG_MUTABILITY_CHOICES} "
                f"(got {self.ecr_image_tag_mutability!r})"
            )

        try:
            validate_subject_scope(self.oidc_subject_pattern, self.github_repository)
        except ValueError as e:
            errors.append(str(e))
        if not self.oidc_audience:
            errors.append("oidc_audience must not be empty")

        if not self.app_message:
            errors.append("app_message must not be empty")
        if not self.app_version:
            errors.append("app_version must not be empty")
        if not 1 <= self.app_port <= 65535:
            errors.append(f"app_port must be a valid TCP port (got {self.app_port})")
        if self.app_replicas < 1:
            errors.append(f"app_replicas must be >= 1 (got {self.app_replicas})")

        if self.scan_severity_threshold not in SEVERITY_CHOICES:
            errors.append(
                f"scan_severity_threshold must be one of {SEVERITY_CHOICES} "
                f"(got {self.scan_severity_threshold!r})"
            )

        if errors:
            raise ConfigurationError("Invalid settings:\n  - " + "\n  - ".join(errors))
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['cluster_name'] = self.cluster_name
        data['repository_name'] = self.repository_name
        return data


def load_settings(validate: bool = True) -> BlueprintSettings:
    """
    Load YAML configuration into the environment and build settings.

    Args:
        validate: Whether to check invariants before returning

    Returns:
        Settings for the current environment
    """
    from eksblueprint.config.loader import load_config

    load_config()
    settings = BlueprintSettings.from_environment()
    return settings.validate() if validate else settings
