"""
Stack for the EKS cluster running the hello service.

The cluster control plane and the managed node group live in the private
subnets of the network stack. The cluster creates its own IAM OIDC provider;
the service account role below is trusted through that provider (IRSA) rather
than a second provider for the same issuer.
"""

from aws_cdk import (
    Stack,
    CfnOutput,
    aws_ec2 as ec2,
    aws_eks as eks,
)
from aws_cdk.lambda_layer_kubectl_v29 import KubectlV29Layer
from constructs import Construct

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.constants import (
    APP_NAMESPACE,
    APP_SERVICE_ACCOUNT,
    KUBECTL_VERSION,
    OUTPUT_CLUSTER_NAME,
    OUTPUT_SERVICE_ACCOUNT_ROLE_ARN,
    SUPPORTED_CLUSTER_VERSIONS,
)
from eksblueprint.naming import get_resource_name
from .shared.tagging import apply_standard_tags

# Managed add-ons installed on every cluster, in install order
CLUSTER_ADDONS = ("vpc-cni", "kube-proxy", "coredns")


class EksClusterStack(Stack):
    """
    CDK Stack for the EKS cluster.

    Creates:
    1. The cluster (no default capacity, public and private endpoint)
    2. A managed node group sized from settings
    3. vpc-cni, kube-proxy and coredns managed add-ons
    4. The application namespace and its IRSA service account
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: BlueprintSettings,
        vpc: ec2.IVpc,
        **kwargs
    ) -> None:
        """
        Initialize the EKS cluster stack.

        Args:
            scope: CDK construct scope
            construct_id: Unique identifier for this stack
            settings: Validated deployment settings
            vpc: VPC from the network stack
            **kwargs: Additional stack properties

        Raises:
            ValueError: If node group sizes violate min <= desired <= max, or the
                cluster version is outside the kubectl layer's version skew
        """
        super().__init__(scope, construct_id, **kwargs)

        if not settings.node_min_size <= settings.node_desired_size <= settings.node_max_size:
            raise ValueError(
                "node group sizes must satisfy min <= desired <= max "
                f"(got {settings.node_min_size}/{settings.node_desired_size}/{settings.node_max_size})"
            )
        if settings.cluster_version not in SUPPORTED_CLUSTER_VERSIONS:
            raise ValueError(
                f"cluster_version {settings.cluster_version!r} is not supported by kubectl "
                f"{KUBECTL_VERSION}; expected one of {SUPPORTED_CLUSTER_VERSIONS}"
            )

        apply_standard_tags(self, settings, "eks-cluster")

        private_subnets = ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS)

        self.cluster = eks.Cluster(
            self,
            "Cluster",
            cluster_name=settings.cluster_name,
            version=eks.KubernetesVersion.of(settings.cluster_version),
            vpc=vpc,
            vpc_subnets=[private_subnets],
            default_capacity=0,
            endpoint_access=eks.EndpointAccess.PUBLIC_AND_PRIVATE,
            # API mode is required by the deploy role access entry
            authentication_mode=eks.AuthenticationMode.API_AND_CONFIG_MAP,
            kubectl_layer=KubectlV29Layer(self, "KubectlLayer"),
        )

        self.nodegroup = self.cluster.add_nodegroup_capacity(
            "DefaultNodeGroup",
            nodegroup_name=get_resource_name(settings.project_name, settings.environment, "nodes"),
            instance_types=[ec2.InstanceType(instance_type) for instance_type in settings.node_instance_types],
            min_size=settings.node_min_size,
            desired_size=settings.node_desired_size,
            max_size=settings.node_max_size,
            disk_size=settings.node_disk_size,
            subnets=private_subnets,
            capacity_type=eks.CapacityType.ON_DEMAND,
        )

        self.addons = {}
        for addon_name in CLUSTER_ADDONS:
            addon = eks.CfnAddon(
                self,
                f"{addon_name.title().replace('-', '')}Addon",
                addon_name=addon_name,
                cluster_name=self.cluster.cluster_name,
                resolve_conflicts="OVERWRITE",
            )
            # coredns pods need nodes to schedule on
            if addon_name == "coredns":
                addon.node.add_dependency(self.nodegroup)
            self.addons[addon_name] = addon

        namespace = self.cluster.add_manifest(
            "AppNamespace",
            {
                "apiVersion": "v1",
                "kind": "Namespace",
                "metadata": {"name": APP_NAMESPACE},
            },
        )

        # IRSA role trusted by the cluster's own OIDC provider
        self.service_account = self.cluster.add_service_account(
            "AppServiceAccount",
            name=APP_SERVICE_ACCOUNT,
            namespace=APP_NAMESPACE,
        )
        self.service_account.node.add_dependency(namespace)

        CfnOutput(
            self,
            OUTPUT_CLUSTER_NAME,
            value=self.cluster.cluster_name,
            description="EKS cluster name for aws eks update-kubeconfig",
        )
        CfnOutput(
            self,
            OUTPUT_SERVICE_ACCOUNT_ROLE_ARN,
            value=self.service_account.role.role_arn,
            description="IRSA role bound to the hello-service service account",
        )
