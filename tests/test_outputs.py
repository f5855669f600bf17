from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from eksblueprint.errors import OutputDiscoveryError
from eksblueprint.outputs import StackOutputDiscovery


def client_error(message, code="ValidationError"):
    return ClientError({"Error": {"Code": code, "Message": message}}, "DescribeStacks")


def stack_response(**outputs):
    return {
        "Stacks": [{
            "StackName": "stack",
            "Outputs": [{"OutputKey": k, "OutputValue": v} for k, v in outputs.items()],
        }]
    }


class TestGetStackOutputs:

    def test_returns_outputs(self):
        cfn = MagicMock()
        cfn.describe_stacks.return_value = stack_response(ClusterName="shop-test-cluster")

        outputs = StackOutputDiscovery("us-west-2", cfn_client=cfn).get_stack_outputs("shop-test-cluster")

        assert outputs == {"ClusterName": "shop-test-cluster"}
        cfn.describe_stacks.assert_called_once_with(StackName="shop-test-cluster")

    def test_stack_without_outputs(self):
        cfn = MagicMock()
        cfn.describe_stacks.return_value = {"Stacks": [{"StackName": "stack"}]}

        assert StackOutputDiscovery("us-west-2", cfn_client=cfn).get_stack_outputs("stack") == {}

    def test_missing_stack(self):
        cfn = MagicMock()
        cfn.describe_stacks.side_effect = client_error("Stack with id stack does not exist")

        assert StackOutputDiscovery("us-west-2", cfn_client=cfn).get_stack_outputs("stack") is None

    def test_other_errors_raise(self):
        cfn = MagicMock()
        cfn.describe_stacks.side_effect = client_error("Access denied", code="AccessDenied")

        with pytest.raises(OutputDiscoveryError, match="Access denied"):
            StackOutputDiscovery("us-west-2", cfn_client=cfn).get_stack_outputs("stack")


def test_discover_merges_deployed_stacks(settings):
    responses = {
        "shop-test-network": stack_response(VpcId="vpc-123"),
        "shop-test-registry": stack_response(RegistryUrl="123456789012.dkr.ecr.us-west-2.amazonaws.com/shop-test"),
        "shop-test-cluster": stack_response(ClusterName="shop-test-cluster"),
    }

    def describe_stacks(StackName):
        if StackName not in responses:
            raise client_error(f"Stack with id {StackName} does not exist")
        return responses[StackName]

    cfn = MagicMock()
    cfn.describe_stacks.side_effect = describe_stacks

    outputs = StackOutputDiscovery("us-west-2", cfn_client=cfn).discover(settings)

    assert outputs == {
        "VpcId": "vpc-123",
        "RegistryUrl": "123456789012.dkr.ecr.us-west-2.amazonaws.com/shop-test",
        "ClusterName": "shop-test-cluster",
    }
    assert cfn.describe_stacks.call_count == 4
