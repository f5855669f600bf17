"""
Tests for typed deployment settings and their invariants.
"""

import pytest

from eksblueprint.errors import ConfigurationError

from .settings import BlueprintSettings


class TestDefaults:

    def test_defaults_are_valid(self):
        settings = BlueprintSettings()
        assert settings.validate() is settings

    def test_derived_names(self):
        settings = BlueprintSettings(project_name="shop", environment="prod")
        assert settings.cluster_name == "shop-prod-cluster"
        assert settings.repository_name == "shop-prod"

    def test_subject_pattern_defaults_to_repository(self):
        settings = BlueprintSettings(github_repository="acme/shop")
        assert settings.oidc_subject_pattern == "repo:acme/shop:*"


class TestFromEnvironment:

    def test_empty_environment_uses_defaults(self):
        settings = BlueprintSettings.from_environment({})
        assert settings == BlueprintSettings()

    def test_parses_types(self):
        settings = BlueprintSettings.from_environment({
            'NODE_INSTANCE_TYPES': 't3.large, m5.large',
            'NODE_MIN_SIZE': '2',
            'NODE_DESIRED_SIZE': '3',
            'NODE_MAX_SIZE': '6',
            'ECR_SCAN_ON_PUSH': 'false',
            'ECR_IMAGE_TAG_MUTABILITY': 'immutable',
            'SCAN_SEVERITY_THRESHOLD': 'critical',
        })

        assert settings.node_instance_types == ['t3.large', 'm5.large']
        assert (settings.node_min_size, settings.node_desired_size, settings.node_max_size) == (2, 3, 6)
        assert settings.ecr_scan_on_push is False
        assert settings.ecr_image_tag_mutability == 'IMMUTABLE'
        assert settings.scan_severity_threshold == 'CRITICAL'

    def test_empty_values_are_ignored(self):
        settings = BlueprintSettings.from_environment({'VPC_CIDR': ''})
        assert settings.vpc_cidr == '10.0.0.0/16'

    def test_invalid_integer(self):
        with pytest.raises(ConfigurationError, match="NODE_MAX_SIZE"):
            BlueprintSettings.from_environment({'NODE_MAX_SIZE': 'lots'})


class TestValidation:

    @pytest.mark.parametrize("min_size,desired,max_size", [
        (0, 0, 1),
        (1, 1, 1),
        (1, 2, 3),
        (3, 3, 10),
    ])
    def test_accepts_ordered_node_bounds(self, min_size, desired, max_size):
        settings = BlueprintSettings(
            node_min_size=min_size, node_desired_size=desired, node_max_size=max_size
        )
        settings.validate()
        assert settings.node_min_size <= settings.node_desired_size <= settings.node_max_size

    @pytest.mark.parametrize("min_size,desired,max_size", [
        (3, 2, 4),
        (1, 5, 4),
        (5, 5, 4),
    ])
    def test_rejects_unordered_node_bounds(self, min_size, desired, max_size):
        settings = BlueprintSettings(
            node_min_size=min_size, node_desired_size=desired, node_max_size=max_size
        )
        with pytest.raises(ConfigurationError, match="min <= desired <= max"):
            settings.validate()

    def test_rejects_zero_max_size(self):
        with pytest.raises(ConfigurationError, match="node_max_size"):
            BlueprintSettings(node_min_size=0, node_desired_size=0, node_max_size=0).validate()

    def test_rejects_zero_retention(self):
        with pytest.raises(ConfigurationError, match="at least 1 image"):
            BlueprintSettings(ecr_image_retention_count=0).validate()

    def test_rejects_bad_cidr(self):
        with pytest.raises(ConfigurationError, match="vpc_cidr"):
            BlueprintSettings(vpc_cidr="10.0.0.300/16").validate()

    def test_rejects_tiny_vpc(self):
        with pytest.raises(ConfigurationError, match="/16 and /24"):
            BlueprintSettings(vpc_cidr="10.0.0.0/28").validate()

    def test_rejects_single_az(self):
        with pytest.raises(ConfigurationError, match="max_azs"):
            BlueprintSettings(max_azs=1, nat_gateways=1).validate()

    def test_rejects_over_broad_subject_pattern(self):
        settings = BlueprintSettings(
            github_repository="acme/shop",
            oidc_subject_pattern="repo:acme/*",
        )
        with pytest.raises(ConfigurationError, match="over-broad"):
            settings.validate()

    def test_rejects_pattern_for_other_repository(self):
        settings = BlueprintSettings(
            github_repository="acme/shop",
            oidc_subject_pattern="repo:other/shop:*",
        )
        with pytest.raises(ConfigurationError, match="over-broad"):
            settings.validate()

    def test_accepts_branch_scoped_pattern(self):
        BlueprintSettings(
            github_repository="acme/shop",
            oidc_subject_pattern="repo:acme/shop:ref:refs/heads/main",
        ).validate()

    @pytest.mark.parametrize("version", ["1.28", "1.29", "1.30"])
    def test_accepts_versions_within_kubectl_skew(self, version):
        BlueprintSettings(cluster_version=version).validate()

    @pytest.mark.parametrize("version", ["1.27", "1.32", "2.0", "latest"])
    def test_rejects_versions_outside_kubectl_skew(self, version):
        with pytest.raises(ConfigurationError, match="kubectl 1.29"):
            BlueprintSettings(cluster_version=version).validate()

    def test_rejects_unknown_tag_mutability(self):
        with pytest.raises(ConfigurationError, match="ecr_image_tag_mutability"):
            BlueprintSettings(ecr_image_tag_mutability="SOMETIMES").validate()

    def test_reports_every_violation(self):
        settings = BlueprintSettings(
            node_min_size=5, node_desired_size=1, node_max_size=2,
            ecr_image_retention_count=0,
            app_port=70000,
        )
        with pytest.raises(ConfigurationError) as exc_info:
            settings.validate()

        message = str(exc_info.value)
        assert "min <= desired <= max" in message
        assert "ecr_image_retention_count" in message
        assert "app_port" in message

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            BlueprintSettings(environment="Prod!").validate()


def test_to_dict_includes_derived_names():
    data = BlueprintSettings().to_dict()
    assert data['cluster_name'] == 'hello-eks-dev-cluster'
    assert data['repository_name'] == 'hello-eks-dev'
    assert data['node_instance_types'] == ['t3.medium']
