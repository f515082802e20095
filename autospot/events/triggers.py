"""
Typed triggers produced by the event classifier.
"""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class CronTrigger:
    """Run the full periodic scan over every region."""


@dataclass(frozen=True)
class SpotInterruptionTrigger:
    """A spot instance received its two minute interruption warning."""
    region: str
    instance_id: str


@dataclass(frozen=True)
class InstanceStateChangeTrigger:
    """An instance moved to a new lifecycle state."""
    region: str
    instance_id: str
    new_state: str


Trigger = Union[CronTrigger, SpotInterruptionTrigger, InstanceStateChangeTrigger]
