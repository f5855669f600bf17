"""
Standard tags applied to every resource in a blueprint stack.
"""

from aws_cdk import Tags
from constructs import IConstruct

from eksblueprint.config.settings import BlueprintSettings


def apply_standard_tags(scope: IConstruct, settings: BlueprintSettings, service: str) -> None:
    """
    Tag all resources under a construct.

    Args:
        scope: Stack or construct to tag
        settings: Deployment settings (project and environment)
        service: Service tag value (e.g., 'network', 'ecr-repository')
    """
    Tags.of(scope).add("Project", settings.project_name)
    Tags.of(scope).add("Environment", settings.environment)
    Tags.of(scope).add("Service", service)
    Tags.of(scope).add("ManagedBy", "CDK")
