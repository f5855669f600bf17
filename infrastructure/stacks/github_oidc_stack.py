"""
Stack for the GitHub Actions deploy role.

GitHub Actions workflows of one repository exchange their OIDC token for this
role's credentials; no long-lived AWS keys are stored in CI. The role can push
to the service repository and deploy into the application namespace through an
EKS access entry, so the stack is deployed after the cluster stack.
"""

from aws_cdk import (
    Stack,
    CfnOutput,
    Duration,
    aws_ecr as ecr,
    aws_eks as eks,
    aws_iam as iam,
)
from constructs import Construct

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.constants import APP_NAMESPACE, GITHUB_OIDC_ISSUER, OUTPUT_DEPLOY_ROLE_ARN
from eksblueprint.naming import get_resource_name
from eksblueprint.trust import github_actions_trust
from .shared.tagging import apply_standard_tags

EKS_EDIT_POLICY_ARN = "arn:aws:eks::aws:cluster-access-policy/AmazonEKSEditPolicy"


class GithubOidcStack(Stack):
    """
    CDK Stack for GitHub OIDC federation.

    Creates (or imports) the account's GitHub OIDC provider and the deploy
    role trusted through it.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: BlueprintSettings,
        cluster: eks.ICluster,
        repository: ecr.IRepository,
        **kwargs
    ) -> None:
        """
        Initialize the GitHub OIDC stack.

        Args:
            scope: CDK construct scope
            construct_id: Unique identifier for this stack
            settings: Validated deployment settings
            cluster: Cluster the deploy role is granted access to
            repository: Repository the deploy role pushes images to
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        apply_standard_tags(self, settings, "github-oidc")

        # An account holds at most one provider per issuer URL
        if settings.github_oidc_provider_arn:
            self.provider = iam.OpenIdConnectProvider.from_open_id_connect_provider_arn(
                self,
                "GithubOidcProvider",
                settings.github_oidc_provider_arn,
            )
        else:
            self.provider = iam.OpenIdConnectProvider(
                self,
                "GithubOidcProvider",
                url=f"https://{GITHUB_OIDC_ISSUER}",
                client_ids=[settings.oidc_audience],
            )

        self.trust_policy = github_actions_trust(
            provider_arn=self.provider.open_id_connect_provider_arn,
            repository=settings.github_repository,
            subject_pattern=settings.oidc_subject_pattern,
            audience=settings.oidc_audience,
        )

        self.deploy_role = iam.Role(
            self,
            "DeployRole",
            role_name=get_resource_name(settings.project_name, settings.environment, "deploy-role"),
            description=f"GitHub Actions deploy role for {settings.github_repository}",
            assumed_by=iam.WebIdentityPrincipal(
                self.provider.open_id_connect_provider_arn,
                conditions=self.trust_policy.conditions(),
            ),
            max_session_duration=Duration.hours(1),
        )

        # Push images to the service repository
        self.deploy_role.add_to_policy(
            iam.PolicyStatement(
                actions=[
                    "ecr:BatchCheckLayerAvailability",
                    "ecr:GetDownloadUrlForLayer",
                    "ecr:BatchGetImage",
                    "ecr:DescribeImages",
                    "ecr:PutImage",
                    "ecr:InitiateLayerUpload",
                    "ecr:UploadLayerPart",
                    "ecr:CompleteLayerUpload"
                ],
                resources=[repository.repository_arn]
            )
        )
        # ECR auth tokens are not resource-scoped
        self.deploy_role.add_to_policy(
            iam.PolicyStatement(
                actions=["ecr:GetAuthorizationToken"],
                resources=["*"]
            )
        )
        # `aws eks update-kubeconfig`
        self.deploy_role.add_to_policy(
            iam.PolicyStatement(
                actions=["eks:DescribeCluster"],
                resources=[cluster.cluster_arn]
            )
        )

        self.access_entry = eks.CfnAccessEntry(
            self,
            "DeployRoleAccessEntry",
            cluster_name=cluster.cluster_name,
            principal_arn=self.deploy_role.role_arn,
            type="STANDARD",
            access_policies=[
                eks.CfnAccessEntry.AccessPolicyProperty(
                    policy_arn=EKS_EDIT_POLICY_ARN,
                    access_scope=eks.CfnAccessEntry.AccessScopeProperty(
                        type="namespace",
                        namespaces=[APP_NAMESPACE],
                    ),
                )
            ],
        )

        CfnOutput(
            self,
            OUTPUT_DEPLOY_ROLE_ARN,
            value=self.deploy_role.role_arn,
            description="Role assumed by GitHub Actions through OIDC",
        )
