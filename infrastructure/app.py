#!/usr/bin/env python3
import os
import aws_cdk as cdk
from eksblueprint.config import BlueprintSettings, load_settings
from eksblueprint.naming import get_stack_name
from stacks.network_stack import NetworkStack
from stacks.ecr_repository_stack import EcrRepositoryStack
from stacks.eks_cluster_stack import EksClusterStack
from stacks.github_oidc_stack import GithubOidcStack


def build_stacks(app: cdk.App, settings: BlueprintSettings, env: cdk.Environment = None) -> dict:
    """
    Instantiate every blueprint stack in dependency order.

    network -> registry -> cluster -> github-oidc

    Returns:
        Dict of component name -> stack
    """
    project, environment = settings.project_name, settings.environment

    network = NetworkStack(
        app,
        get_stack_name(project, environment, "network"),
        settings=settings,
        env=env,
        description=f"VPC for the {project} {environment} EKS cluster"
    )

    # Deploy this before the pipeline first pushes an image
    registry = EcrRepositoryStack(
        app,
        get_stack_name(project, environment, "registry"),
        settings=settings,
        env=env,
        description=f"ECR repository for the {project} {environment} service image"
    )

    cluster = EksClusterStack(
        app,
        get_stack_name(project, environment, "cluster"),
        settings=settings,
        vpc=network.vpc,
        env=env,
        description=f"EKS cluster {settings.cluster_name}"
    )

    github_oidc = GithubOidcStack(
        app,
        get_stack_name(project, environment, "github-oidc"),
        settings=settings,
        cluster=cluster.cluster,
        repository=registry.repository,
        env=env,
        description=f"GitHub Actions OIDC deploy role for {settings.github_repository}"
    )
    # The deploy role's access entry needs the cluster to exist
    github_oidc.add_dependency(cluster)

    return {
        "network": network,
        "registry": registry,
        "cluster": cluster,
        "github-oidc": github_oidc,
    }


if __name__ == "__main__":
    app = cdk.App()

    settings = load_settings()

    # Get AWS account and region from environment or use settings
    account = os.environ.get('CDK_DEFAULT_ACCOUNT')
    region = os.environ.get('CDK_DEFAULT_REGION', settings.region)

    build_stacks(app, settings, cdk.Environment(account=account, region=region))

    app.synth()
