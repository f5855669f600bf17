"""
Shared constants for eksblueprint infrastructure and tooling.

This module contains constants used by both the CDK stacks and the CLI.
"""

# AWS Region
DEFAULT_REGION = "us-west-2"

# GitHub Actions OIDC issuer
GITHUB_OIDC_ISSUER = "token.actions.githubusercontent.com"
STS_AUDIENCE = "sts.amazonaws.com"

# Kubernetes namespace and service account for the hello service
APP_NAMESPACE = "hello"
APP_NAME = "hello-service"
APP_SERVICE_ACCOUNT = "hello-service"

# CloudFormation output keys (stable, read back by `eksblueprint infra outputs`)
OUTPUT_VPC_ID = "VpcId"
OUTPUT_CLUSTER_NAME = "ClusterName"
OUTPUT_REGISTRY_URL = "RegistryUrl"
OUTPUT_DEPLOY_ROLE_ARN = "DeployRoleArn"
OUTPUT_SERVICE_ACCOUNT_ROLE_ARN = "ServiceAccountRoleArn"

# Subnet tags used by the AWS load balancer controller for discovery
PUBLIC_ELB_TAG = "kubernetes.io/role/elb"
INTERNAL_ELB_TAG = "kubernetes.io/role/internal-elb"

# kubectl used by the cluster stack's manifest handler (KubectlV29Layer).
# kubectl supports one minor version of skew either way.
KUBECTL_VERSION = "1.29"
SUPPORTED_CLUSTER_VERSIONS = ("1.28", "1.29", "1.30")
