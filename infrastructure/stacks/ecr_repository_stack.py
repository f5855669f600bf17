"""
Stack for the ECR repository holding the hello service image.

One repository per environment. Lifecycle rules come from
``eksblueprint.registry.RetentionPolicy`` so the deployed rules and the
``eksblueprint registry retention-preview`` command agree.
"""

from typing import Any, Dict

from aws_cdk import (
    Stack,
    CfnOutput,
    RemovalPolicy,
    Duration,
    aws_ecr as ecr,
)
from constructs import Construct

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.constants import OUTPUT_REGISTRY_URL
from eksblueprint.registry import RetentionPolicy
from .shared.tagging import apply_standard_tags


class EcrRepositoryStack(Stack):
    """
    CDK Stack for the service's ECR repository.

    Creates the repository with scan-on-push and lifecycle rules.
    This stack must be deployed before the pipeline can push images.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        settings: BlueprintSettings,
        **kwargs
    ) -> None:
        """
        Initialize the ECR repository stack.

        Args:
            scope: CDK construct scope
            construct_id: Unique identifier for this stack
            settings: Validated deployment settings
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)

        apply_standard_tags(self, settings, "ecr-repository")

        self.retention_policy = RetentionPolicy(
            max_image_count=settings.ecr_image_retention_count,
            untagged_expiry_days=settings.ecr_untagged_expiry_days,
        )

        self.repository = ecr.Repository(
            self,
            "ServiceRepository",
            repository_name=settings.repository_name,
            image_scan_on_push=settings.ecr_scan_on_push,
            image_tag_mutability=ecr.TagMutability[settings.ecr_image_tag_mutability],
            lifecycle_rules=[
                to_lifecycle_rule(rule) for rule in self.retention_policy.lifecycle_rules()
            ],
            removal_policy=RemovalPolicy.RETAIN,  # Keep images if the stack is deleted
        )

        CfnOutput(
            self,
            OUTPUT_REGISTRY_URL,
            value=self.repository.repository_uri,
            description="Repository URI the pipeline pushes images to",
        )


def to_lifecycle_rule(rule: Dict[str, Any]) -> ecr.LifecycleRule:
    """
    Convert an ECR lifecycle rule document into a CDK LifecycleRule.

    Args:
        rule: One entry of ``RetentionPolicy.lifecycle_rules()``

    Returns:
        Equivalent CDK lifecycle rule
    """
    selection = rule["selection"]
    tag_status = {
        "untagged": ecr.TagStatus.UNTAGGED,
        "tagged": ecr.TagStatus.TAGGED,
        "any": ecr.TagStatus.ANY,
    }[selection["tagStatus"]]

    if selection["countType"] == "sinceImagePushed":
        return ecr.LifecycleRule(
            description=rule["description"],
            rule_priority=rule["rulePriority"],
            tag_status=tag_status,
            max_image_age=Duration.days(selection["countNumber"]),
        )
    return ecr.LifecycleRule(
        description=rule["description"],
        rule_priority=rule["rulePriority"],
        tag_status=tag_status,
        max_image_count=selection["countNumber"],
    )
