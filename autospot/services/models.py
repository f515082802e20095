"""
Data models for fleet scanning and replacement.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


GROUP_NAME_TAG = 'aws:autoscaling:groupName'
LAUNCHED_FOR_ASG_TAG = 'launched-for-asg'
REPLACING_INSTANCE_TAG = 'launched-for-replacing-instance'


@dataclass
class Instance:
    """An EC2 instance discovered in one region."""
    instance_id: str
    region: str                 # Name of the owning region
    state: str                  # pending, running, stopped, terminated...
    instance_type: str
    lifecycle: str              # 'spot' or 'on-demand'
    tags: Dict[str, str]
    availability_zone: Optional[str] = None
    image_id: Optional[str] = None
    subnet_id: Optional[str] = None
    security_group_ids: List[str] = field(default_factory=list)
    key_name: Optional[str] = None
    launch_time: Optional[datetime] = None

    @property
    def is_spot(self) -> bool:
        return self.lifecycle == 'spot'

    @property
    def group_name(self) -> Optional[str]:
        return self.tags.get(GROUP_NAME_TAG)

    @property
    def launched_for_asg(self) -> Optional[str]:
        return self.tags.get(LAUNCHED_FOR_ASG_TAG)

    @property
    def replacing_instance_id(self) -> Optional[str]:
        return self.tags.get(REPLACING_INSTANCE_TAG)


@dataclass
class AutoScalingGroup:
    """An Auto Scaling group enabled for spot replacement."""
    name: str
    region: str
    tags: Dict[str, str]
    min_size: int
    max_size: int
    desired_capacity: int
    members: Dict[str, str] = field(default_factory=dict)  # instance ID -> lifecycle state

    def has_member(self, instance_id: str) -> bool:
        return instance_id in self.members


@dataclass(frozen=True)
class InstanceTypeInfo:
    """Static facts about one instance type."""
    instance_type: str
    vcpus: int
    memory_mib: int
    spot_supported: bool
    on_demand_price: Optional[float] = None


@dataclass
class OperationResult:
    """Result of a successful replacement action."""
    instance: Instance
    operation: str              # 'launch_spot_replacement', 'swap_with_group_member'
    message: str
    timestamp: datetime
    hourly_savings: float = 0.0
    related_instance_id: Optional[str] = None  # Launched spot or replaced on-demand instance
    duration: Optional[float] = None
