"""
Runtime context shared read-only by every region worker.
"""
from dataclasses import dataclass
from typing import Dict

import boto3

from .models import InstanceTypeInfo
from ..core.config import Config
from ..core.savings import SavingsAccumulator


@dataclass(frozen=True)
class RuntimeContext:
    """Everything built once at start-up and handed to each RegionJob."""
    config: Config
    session: boto3.Session
    instance_types: Dict[str, InstanceTypeInfo]
    savings: SavingsAccumulator
