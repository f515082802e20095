"""
Eligibility predicates and action executors for one instance.
"""
from typing import TYPE_CHECKING, Optional
import logging

from .models import Instance, OperationResult
from ..core.exceptions import ServiceError
from ..engine.decision import EligibilityPredicates

if TYPE_CHECKING:
    from .region import RegionJob


logger = logging.getLogger(__name__)


class InstanceEligibility(EligibilityPredicates):
    """Eligibility of an instance, judged against its region's scan."""

    def __init__(self, instance: Instance, job: "RegionJob"):
        self.instance = instance
        self.job = job

    def belongs_to_enabled_asg(self) -> bool:
        group_name = self.instance.group_name
        return group_name is not None and group_name in self.job.groups

    def should_be_replaced_with_spot(self) -> bool:
        instance = self.instance
        region = self.job.name

        if instance.is_spot:
            logger.debug(f"{region} {instance.instance_id} is already a spot instance")
            return False

        group = self.job.groups.get(instance.group_name)
        if group is None:
            return False

        info = self.job.context.instance_types.get(instance.instance_type)
        if info is not None and not info.spot_supported:
            logger.debug(f"{region} {instance.instance_type} is not offered as spot")
            return False

        on_demand = self.job.on_demand_members(group)
        minimum = self.job.context.config.min_on_demand_number
        if len(on_demand) <= minimum:
            logger.debug(f"{region} group {group.name} has {len(on_demand)} on-demand "
                         f"instances, keeping at least {minimum}")
            return False

        existing = self.job.ec2.find_spot_replacement(instance.instance_id)
        if existing:
            logger.debug(f"{region} {instance.instance_id} already has spot replacement {existing}")
            return False

        return True

    def is_unattached_spot_instance_launched_for_an_enabled_asg(self) -> bool:
        instance = self.instance
        if not instance.is_spot:
            return False
        group = self.job.groups.get(instance.launched_for_asg)
        if group is None:
            return False
        return not group.has_member(instance.instance_id)


class ReplacementExecutor:
    """Carries out the actions chosen by the decision engine."""

    def __init__(self, job: "RegionJob"):
        self.job = job

    def launch_spot_replacement(self, instance: Instance) -> OperationResult:
        """Launch a spot instance meant to replace an on-demand group member.

        Raises:
            ServiceError: If the instance has no group or the launch fails
        """
        group_name = instance.group_name
        if not group_name:
            raise ServiceError(f"{self.job.name} instance {instance.instance_id} has no Auto Scaling group")
        return self.job.ec2.launch_spot_replacement(instance, group_name)

    def swap_with_group_member(self, spot_instance: Instance) -> OperationResult:
        """Swap a running spot instance against an on-demand member of its group.

        Raises:
            ServiceError: If no on-demand member is left or the swap fails
        """
        group = self.job.groups.get(spot_instance.launched_for_asg)
        if group is None:
            raise ServiceError(
                f"{self.job.name} group {spot_instance.launched_for_asg} of "
                f"{spot_instance.instance_id} is not enabled"
            )

        target = self._pick_on_demand_member(group, spot_instance.replacing_instance_id)
        if target is None:
            raise ServiceError(f"{self.job.name} group {group.name} has no on-demand instance left to replace")

        logger.info(f"{self.job.name} swapping on-demand {target.instance_id} with spot "
                    f"{spot_instance.instance_id} in {group.name}")
        savings = self._hourly_savings(target, spot_instance)
        return self.job.autoscaling.swap_members(group, spot_instance, target.instance_id, savings)

    def _pick_on_demand_member(self, group, preferred_id: Optional[str]) -> Optional[Instance]:
        candidates = [
            i for i in self.job.on_demand_members(group)
            if i.state == 'running' and group.members.get(i.instance_id) == 'InService'
        ]
        for candidate in candidates:
            if candidate.instance_id == preferred_id:
                return candidate
        return candidates[0] if candidates else None

    def _hourly_savings(self, on_demand: Instance, spot: Instance) -> float:
        info = self.job.context.instance_types.get(on_demand.instance_type)
        on_demand_price = info.on_demand_price if info else None
        if on_demand_price is None:
            on_demand_price = self.job.context.config.on_demand_prices.get(on_demand.instance_type)
        if on_demand_price is None:
            logger.debug(f"{self.job.name} no on-demand price known for {on_demand.instance_type}")
            return 0.0

        spot_price = self.job.ec2.latest_spot_price(spot.instance_type, spot.availability_zone)
        if spot_price is None:
            return 0.0

        return max(0.0, on_demand_price - spot_price)
