"""
Discovery of deployed stack outputs via the CloudFormation API.

After ``cdk deploy`` the identifiers operators need (cluster name, registry
URL, deploy role ARN) live as CloudFormation outputs on the blueprint stacks.
This module reads them back by stack name.
"""

import logging
from typing import Dict, Optional

import boto3
from botocore.exceptions import ClientError

from eksblueprint.config.settings import BlueprintSettings
from eksblueprint.errors import OutputDiscoveryError
from eksblueprint.naming import STACK_COMPONENTS, get_stack_name

logger = logging.getLogger(__name__)


class StackOutputDiscovery:
    """
    Reads CloudFormation outputs of the blueprint stacks.
    """

    def __init__(self, region: str, cfn_client=None):
        """
        Initialize the discovery client.

        Args:
            region: AWS region where the stacks are deployed
            cfn_client: Optional pre-built CloudFormation client
        """
        self.region = region
        self.cfn_client = cfn_client or boto3.client('cloudformation', region_name=region)

    def get_stack_outputs(self, stack_name: str) -> Optional[Dict[str, str]]:
        """
        Get the outputs of one stack.

        Args:
            stack_name: CloudFormation stack name

        Returns:
            Dict of OutputKey -> OutputValue, or None if the stack does not exist

        Raises:
            OutputDiscoveryError: For any AWS error other than a missing stack
        """
        try:
            response = self.cfn_client.describe_stacks(StackName=stack_name)
        except ClientError as e:
            message = e.response.get('Error', {}).get('Message', '')
            if 'does not exist' in message:
                logger.debug(f"Stack {stack_name} not found")
                return None
            logger.error(f"Error describing stack {stack_name}: {e}")
            raise OutputDiscoveryError(f"Could not describe stack {stack_name}: {e}") from e

        stacks = response.get('Stacks') or []
        if not stacks:
            return None
        return {
            output['OutputKey']: output['OutputValue']
            for output in stacks[0].get('Outputs') or []
        }

    def discover(self, settings: BlueprintSettings) -> Dict[str, str]:
        """
        Collect outputs from every blueprint stack of one environment.

        Args:
            settings: Settings naming the project and environment

        Returns:
            Merged outputs of all deployed stacks; stacks that are not deployed
            contribute nothing
        """
        results = {}
        for component in STACK_COMPONENTS:
            stack_name = get_stack_name(settings.project_name, settings.environment, component)
            outputs = self.get_stack_outputs(stack_name)
            if outputs is None:
                logger.info(f"Stack not deployed: {stack_name}")
                continue
            logger.debug(f"Found {len(outputs)} outputs on {stack_name}")
            results.update(outputs)
        return results
