"""
eksblueprint Configuration Loader

Reads `.eksblueprint/config.yaml` (or `.yml`) from the working directory and
the home directory and exports the values as the environment variables that
`BlueprintSettings` reads. Precedence: environment -> working directory ->
home directory -> built-in defaults.
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
import yaml
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ConfigSource:
    """Represents a configuration source with its path and priority."""
    path: Path
    priority: int
    exists: bool = False


class ConfigLoader:
    """Maps eksblueprint YAML config files onto environment variables."""

    CONFIG_FILENAMES = ["config.yaml", "config.yml"]
    CONFIG_DIR = ".eksblueprint"

    # Environment variable mapping from YAML keys to env var names
    ENV_VAR_MAPPING = {
        # AWS
        'aws.region': 'AWS_REGION',

        # Project
        'project.name': 'PROJECT_NAME',
        'project.environment': 'ENVIRONMENT',
        'debug': 'DEBUG',

        # Network
        'network.vpc_cidr': 'VPC_CIDR',
        'network.max_azs': 'MAX_AZS',
        'network.nat_gateways': 'NAT_GATEWAYS',

        # Cluster
        'cluster.version': 'CLUSTER_VERSION',
        'cluster.instance_types': 'NODE_INSTANCE_TYPES',
        'cluster.min_size': 'NODE_MIN_SIZE',
        'cluster.desired_size': 'NODE_DESIRED_SIZE',
        'cluster.max_size': 'NODE_MAX_SIZE',
        'cluster.disk_size': 'NODE_DISK_SIZE',

        # Registry
        'registry.retention_count': 'ECR_IMAGE_RETENTION_COUNT',
        'registry.untagged_expiry_days': 'ECR_UNTAGGED_EXPIRY_DAYS',
        'registry.tag_mutability': 'ECR_IMAGE_TAG_MUTABILITY',
        'registry.scan_on_push': 'ECR_SCAN_ON_PUSH',

        # GitHub OIDC federation
        'github.repository': 'GITHUB_REPOSITORY',
        'github.oidc_subject_pattern': 'OIDC_SUBJECT_PATTERN',
        'github.oidc_audience': 'OIDC_AUDIENCE',
        'github.oidc_provider_arn': 'GITHUB_OIDC_PROVIDER_ARN',

        # Service
        'service.message': 'APP_MESSAGE',
        'service.version': 'APP_VERSION',
        'service.port': 'APP_PORT',
        'service.replicas': 'APP_REPLICAS',

        # Pipeline
        'pipeline.scan_severity_threshold': 'SCAN_SEVERITY_THRESHOLD',
    }

    def __init__(self, search_dirs: Optional[List[Path]] = None):
        self.search_dirs = search_dirs if search_dirs is not None else [Path.cwd(), Path.home()]
        self.config_sources = self._discover_config_sources()
        self.env_vars_set = 0

    def _discover_config_sources(self) -> List[ConfigSource]:
        """Candidate files, highest priority first: each search dir's config.yaml, then config.yml."""
        paths = [
            directory / self.CONFIG_DIR / filename
            for directory in self.search_dirs
            for filename in self.CONFIG_FILENAMES
        ]
        return [ConfigSource(path, priority, path.exists()) for priority, path in enumerate(paths, start=1)]

    @classmethod
    def _flatten(cls, data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        """Turn nested mappings into dotted keys (``cluster: {min_size: 1}`` -> ``cluster.min_size``)."""
        flat = {}
        for key, value in data.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict):
                flat.update(cls._flatten(value, f"{dotted}."))
            else:
                flat[dotted] = value
        return flat

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """Load one config file as dotted keys; unreadable files count as empty."""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {file_path}: {e}")
            return {}

        if not isinstance(config, dict):
            logger.warning(f"Ignoring {file_path}: expected a mapping at the top level")
            return {}
        logger.debug(f"Loaded config from {file_path}")
        return self._flatten(config)

    @staticmethod
    def _to_env_value(value: Any) -> str:
        """Render a YAML value as an environment variable string."""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (list, tuple)):
            return ",".join(str(item) for item in value)
        return str(value)

    def resolve(self) -> Dict[str, Tuple[str, Path]]:
        """
        Read every existing config file and pick one value per environment variable.

        The first file (in priority order) that sets a key wins. Keys with no
        environment variable mapping are reported and ignored.

        Returns:
            env var name -> (value as string, file it came from)
        """
        resolved: Dict[str, Tuple[str, Path]] = {}
        for source in sorted(self.config_sources, key=lambda s: s.priority):
            if not source.exists:
                continue
            values = self._load_yaml_file(source.path)

            unknown = sorted(key for key in values if key not in self.ENV_VAR_MAPPING)
            if unknown:
                logger.warning(f"Ignoring unknown keys in {source.path}: {', '.join(unknown)}")

            for key, value in values.items():
                env_var = self.ENV_VAR_MAPPING.get(key)
                if env_var is None or value is None or env_var in resolved:
                    continue
                resolved[env_var] = (self._to_env_value(value), source.path)
        return resolved

    def load_config(self) -> Dict[str, str]:
        """
        Export config file values as environment variables.

        Variables already present in the environment are left alone, so the
        precedence is: environment > config files > built-in defaults.

        Returns:
            The variables this call set, with their values
        """
        applied = {}
        files = set()
        for env_var, (value, path) in self.resolve().items():
            files.add(str(path))
            if env_var in os.environ:
                logger.debug(f"Skipped {env_var} - already set in environment")
                continue
            os.environ[env_var] = value
            applied[env_var] = value
            logger.debug(f"Set {env_var} from {path}")

        self.env_vars_set = len(applied)
        if files:
            logger.info(
                f"Loaded configuration from {', '.join(sorted(files))} - "
                f"set {self.env_vars_set} environment variables"
            )
        else:
            logger.debug("No configuration files found - using environment variables only")
        return applied

    def describe_origins(self) -> Dict[str, str]:
        """
        Where each supported variable gets its value: a config file path,
        ``environment`` or ``default``.

        A variable whose environment value equals the file value is attributed
        to the file, since ``load_config`` may already have exported it.
        """
        resolved = self.resolve()
        origins = {}
        for env_var in sorted(set(self.ENV_VAR_MAPPING.values())):
            current = os.environ.get(env_var)
            if env_var in resolved and current in (None, resolved[env_var][0]):
                origins[env_var] = str(resolved[env_var][1])
            elif current is not None:
                origins[env_var] = "environment"
            else:
                origins[env_var] = "default"
        return origins

    def get_available_sources(self) -> List[str]:
        """Get list of available configuration sources."""
        return [str(source.path) for source in self.config_sources if source.exists]


def load_config() -> Dict[str, str]:
    """Convenience function to export eksblueprint configuration files into the environment."""
    return ConfigLoader().load_config()
