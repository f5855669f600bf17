"""
Centralized naming utilities for eksblueprint resources.

Naming convention: {project}-{environment}-{resource}
Examples:
  - hello-eks-dev-cluster
  - hello-eks-dev-network (stack)
  - hello-eks-production-deploy-role
"""


def get_resource_name(project: str, environment: str, resource: str) -> str:
    """
    Generate a standardized resource name.

    Args:
        project: Project name (e.g., 'hello-eks')
        environment: Environment name (e.g., 'dev', 'production')
        resource: Resource type (e.g., 'cluster', 'deploy-role')

    Returns:
        Formatted resource name following the naming convention
    """
    return f"{project}-{environment}-{resource}"


def get_cluster_name(project: str, environment: str) -> str:
    return get_resource_name(project, environment, "cluster")


def get_repository_name(project: str, environment: str) -> str:
    """ECR repository names are lowercase and carry no resource suffix."""
    return f"{project}-{environment}".lower()


def get_stack_name(project: str, environment: str, component: str) -> str:
    """
    Generate a CloudFormation stack name.

    Args:
        project: Project name
        environment: Environment name
        component: One of 'network', 'registry', 'cluster', 'github-oidc'

    Returns:
        Stack name shared by the CDK app and the outputs discovery
    """
    return get_resource_name(project, environment, component)


STACK_COMPONENTS = ("network", "registry", "cluster", "github-oidc")
