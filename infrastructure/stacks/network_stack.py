"""
Stack for the VPC hosting the EKS cluster.

Each availability zone gets one public and one private subnet. Subnets carry
the tags the AWS load balancer controller and Kubernetes cloud provider use to
place internet-facing and internal load balancers.
"""

from aws_cdk import (
    Stack,
    CfnOutput,
    Tags,
    aws_ec2 as ec2,
)
from constructs import Construct

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.constants import INTERNAL_ELB_TAG, OUTPUT_VPC_ID, PUBLIC_ELB_TAG
from .shared.tagging import apply_standard_tags

SUBNET_CIDR_MASK_OFFSET = 4


class NetworkStack(Stack):
    """
    CDK Stack for the cluster VPC.

    Creates a VPC with public subnets (internet gateway) and private subnets
    (egress through NAT gateways) across ``max_azs`` availability zones.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: BlueprintSettings,
        **kwargs
    ) -> None:
        """
        Initialize the network stack.

        Args:
            scope: CDK construct scope
            construct_id: Unique identifier for this stack
            settings: Validated deployment settings
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        apply_standard_tags(self, settings, "network")

        cluster_name = settings.cluster_name
        subnet_mask = subnet_cidr_mask(settings.vpc_cidr)

        self.vpc = ec2.Vpc(
            self,
            "Vpc",
            vpc_name=f"{settings.project_name}-{settings.environment}-vpc",
            ip_addresses=ec2.IpAddresses.cidr(settings.vpc_cidr),
            max_azs=settings.max_azs,
            nat_gateways=settings.nat_gateways,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=subnet_mask,
                ),
                ec2.SubnetConfiguration(
                    name="private",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=subnet_mask,
                ),
            ],
        )

        # Load balancer discovery tags
        for subnet in self.vpc.public_subnets:
            Tags.of(subnet).add(PUBLIC_ELB_TAG, "1")
        for subnet in self.vpc.private_subnets:
            Tags.of(subnet).add(INTERNAL_ELB_TAG, "1")
        Tags.of(self.vpc).add(f"kubernetes.io/cluster/{cluster_name}", "shared")

        CfnOutput(
            self,
            OUTPUT_VPC_ID,
            value=self.vpc.vpc_id,
            description="VPC hosting the EKS cluster",
        )


def subnet_cidr_mask(vpc_cidr: str) -> int:
    """
    Subnet prefix length for a VPC CIDR.

    A /16 VPC yields /20 subnets, leaving room for up to 16 subnets
    (eight zones with one public and one private subnet each).
    """
    prefix = int(vpc_cidr.split("/")[1])
    return min(prefix + SUBNET_CIDR_MASK_OFFSET, 28)
