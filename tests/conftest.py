"""
Pytest configuration and shared fixtures for AutoSpot tests.
"""

import boto3
import pytest
from moto import mock_aws

from autospot.core.config import Config
from autospot.core.savings import SavingsAccumulator
from autospot.services.context import RuntimeContext
from autospot.services.filters import TagFilter
from autospot.services.models import AutoScalingGroup, Instance, GROUP_NAME_TAG


REGION = "us-east-1"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so no test can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def mock_aws_services(aws_credentials):
    """Mock all AWS services used by the application."""
    with mock_aws():
        yield


@pytest.fixture
def session(mock_aws_services):
    return boto3.Session(region_name=REGION)


@pytest.fixture
def config():
    return Config(main_region=REGION)


@pytest.fixture
def make_context(config):
    """Build a RuntimeContext around a session and optional catalog."""
    def _make(session=None, instance_types=None, cfg=None):
        return RuntimeContext(
            config=cfg or config,
            session=session,
            instance_types=instance_types or {},
            savings=SavingsAccumulator()
        )
    return _make


@pytest.fixture
def tag_filter(config):
    return TagFilter.from_config(config)


@pytest.fixture
def image_id(session):
    """An AMI that moto knows about."""
    ec2 = session.client("ec2", region_name=REGION)
    return ec2.describe_images()["Images"][0]["ImageId"]


@pytest.fixture
def spot_enabled_group(session, image_id):
    """An opted-in Auto Scaling group with two on-demand instances."""
    autoscaling = session.client("autoscaling", region_name=REGION)
    autoscaling.create_launch_configuration(
        LaunchConfigurationName="web-lc",
        ImageId=image_id,
        InstanceType="t3.micro"
    )
    autoscaling.create_auto_scaling_group(
        AutoScalingGroupName="web",
        LaunchConfigurationName="web-lc",
        MinSize=0,
        MaxSize=4,
        DesiredCapacity=2,
        AvailabilityZones=[f"{REGION}a"],
        Tags=[{
            "Key": "spot-enabled",
            "Value": "true",
            "PropagateAtLaunch": True,
            "ResourceId": "web",
            "ResourceType": "auto-scaling-group"
        }]
    )
    group = autoscaling.describe_auto_scaling_groups(AutoScalingGroupNames=["web"])["AutoScalingGroups"][0]
    return [i["InstanceId"] for i in group["Instances"]]


def make_instance(instance_id="i-0123", state="running", lifecycle="on-demand", group="web", **tags):
    """Instance model for tests that do not talk to AWS."""
    all_tags = dict(tags)
    if group:
        all_tags[GROUP_NAME_TAG] = group
    return Instance(
        instance_id=instance_id,
        region=REGION,
        state=state,
        instance_type="m5.large",
        lifecycle=lifecycle,
        tags=all_tags,
        availability_zone=f"{REGION}a",
        image_id="ami-0abc",
        subnet_id="subnet-1",
        security_group_ids=["sg-1"],
    )


def make_group(name="web", members=None, min_size=0, max_size=4, desired=None):
    members = members or {}
    return AutoScalingGroup(
        name=name,
        region=REGION,
        tags={"spot-enabled": "true"},
        min_size=min_size,
        max_size=max_size,
        desired_capacity=len(members) if desired is None else desired,
        members=dict(members)
    )
