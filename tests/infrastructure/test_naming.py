"""
Tests for infrastructure naming conventions.

Stack names are shared by the CDK app and `eksblueprint infra outputs`, so a
change here silently breaks output discovery.
"""

import sys
import os
import pytest

# Add infrastructure directory to path so we can import from it
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '../..'))
infrastructure_path = os.path.join(project_root, 'infrastructure')
if infrastructure_path not in sys.path:
    sys.path.insert(0, infrastructure_path)

from eksblueprint.naming import (
    STACK_COMPONENTS,
    get_cluster_name,
    get_repository_name,
    get_resource_name,
    get_stack_name,
)
from stacks.network_stack import subnet_cidr_mask


class TestResourceNaming:
    """Test {project}-{environment}-{resource} names."""

    def test_resource_name(self):
        assert get_resource_name('hello-eks', 'dev', 'deploy-role') == 'hello-eks-dev-deploy-role'

    def test_cluster_name(self):
        assert get_cluster_name('hello-eks', 'production') == 'hello-eks-production-cluster'

    def test_repository_name_is_lowercase(self):
        assert get_repository_name('Hello-EKS', 'Dev') == 'hello-eks-dev'

    def test_stack_names_are_unique(self):
        names = [get_stack_name('hello-eks', 'dev', component) for component in STACK_COMPONENTS]
        assert names == [
            'hello-eks-dev-network',
            'hello-eks-dev-registry',
            'hello-eks-dev-cluster',
            'hello-eks-dev-github-oidc',
        ]
        assert len(set(names)) == len(names)

    def test_environments_do_not_collide(self):
        assert get_stack_name('hello-eks', 'dev', 'cluster') != get_stack_name('hello-eks', 'prod', 'cluster')


class TestSubnetCidrMask:

    @pytest.mark.parametrize("vpc_cidr,expected", [
        ('10.0.0.0/16', 20),
        ('10.0.0.0/20', 24),
        ('10.0.0.0/24', 28),
    ])
    def test_mask(self, vpc_cidr, expected):
        assert subnet_cidr_mask(vpc_cidr) == expected
