"""AWS fleet scanning and spot replacement package."""

from .models import Instance, AutoScalingGroup, InstanceTypeInfo, OperationResult
from .ec2 import EC2ServiceManager
from .autoscaling import AutoScalingServiceManager
from .region import RegionJob
from .controller import FleetController

__all__ = [
    'Instance',
    'AutoScalingGroup',
    'InstanceTypeInfo',
    'OperationResult',
    'EC2ServiceManager',
    'AutoScalingServiceManager',
    'RegionJob',
    'FleetController'
]
