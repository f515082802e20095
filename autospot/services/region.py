"""
Region worker: scans one region and acts on its instances.
"""
from typing import Dict, List, Optional
import logging

from .autoscaling import AutoScalingServiceManager
from .context import RuntimeContext
from .ec2 import EC2ServiceManager
from .filters import TagFilter, region_enabled
from .models import AutoScalingGroup, Instance, InstanceTypeInfo, OperationResult
from .replacement import InstanceEligibility, ReplacementExecutor
from .termination import SpotTermination
from ..core.exceptions import InstanceMissingError
from ..engine.decision import Action, Decision, decide


logger = logging.getLogger(__name__)


class RegionJob:
    """One scan of one region, owned by a single worker.

    Nothing in a RegionJob is shared with other regions, so its groups
    and instances need no locking.
    """

    def __init__(self, name: str, context: RuntimeContext, tag_filter: TagFilter):
        """Initialize the job.

        Args:
            name: AWS region name
            context: Shared read-only runtime context
            tag_filter: Group tag filter resolved for this invocation
        """
        self.name = name
        self.context = context
        self.tag_filter = tag_filter
        self.ec2: Optional[EC2ServiceManager] = None
        self.autoscaling: Optional[AutoScalingServiceManager] = None
        self.groups: Dict[str, AutoScalingGroup] = {}
        self.instances: Dict[str, Instance] = {}
        self.instance_types: Dict[str, InstanceTypeInfo] = {}

    def enabled(self) -> bool:
        return region_enabled(self.name, self.context.config.regions)

    def connect(self) -> None:
        self.ec2 = EC2ServiceManager(self.context.session, self.name)
        self.autoscaling = AutoScalingServiceManager(self.context.session, self.name)

    def scan_for_enabled_groups(self) -> None:
        self.groups = self.autoscaling.scan_groups(self.tag_filter)

    def determine_instance_type_information(self) -> None:
        logger.debug(f"{self.name} using information about {len(self.context.instance_types)} instance types")
        self.instance_types = self.context.instance_types

    def scan_instances(self) -> None:
        self.instances = {i.instance_id: i for i in self.ec2.scan_instances()}

    def scan_instance(self, instance_id: str) -> Instance:
        """Scan a single instance and add it to the job.

        Raises:
            InstanceMissingError: If the instance does not exist
        """
        instance = self.ec2.scan_instance(instance_id)
        if instance is None:
            raise InstanceMissingError(self.name, instance_id)
        self.instances[instance_id] = instance
        return instance

    def on_demand_members(self, group: AutoScalingGroup) -> List[Instance]:
        """On-demand instances currently in a group, scanning unknown ones."""
        missing = [i for i in group.members if i not in self.instances]
        if missing:
            for instance in self.ec2.scan_instances(missing):
                self.instances[instance.instance_id] = instance

        return [
            self.instances[i] for i in group.members
            if i in self.instances and not self.instances[i].is_spot
        ]

    def _prepare(self) -> None:
        self.connect()
        self.scan_for_enabled_groups()
        self.determine_instance_type_information()

    def process_region(self) -> List[OperationResult]:
        """Run the periodic scan of the region.

        Failures acting on one instance are logged and do not stop the
        others; failures while scanning abort the region.

        Returns:
            Results of the actions that succeeded

        Raises:
            ServiceError: If connecting or scanning the region fails
        """
        if not self.enabled():
            logger.debug(f"Not enabled to run in {self.name}, enabled regions: {self.context.config.regions}")
            return []

        logger.info(f"Enabled to run in {self.name}, processing region")
        self._prepare()
        self.scan_instances()

        results = []
        for instance in list(self.instances.values()):
            try:
                result = self.process_instance(instance, instance.state)
            except Exception as e:
                logger.error(f"{self.name} failed to process instance {instance.instance_id}: {e}")
                continue
            if result is not None:
                results.append(result)

        logger.info(f"{self.name} processed {len(self.instances)} instances, {len(results)} actions succeeded")
        return results

    def handle_instance_event(self, instance_id: str, state: str) -> Optional[OperationResult]:
        """Decide on one instance whose state change was notified.

        Returns:
            The action result, or None if nothing was done

        Raises:
            InstanceMissingError: If the instance cannot be found
            ServiceError: If scanning or the chosen action fails
        """
        if not self.enabled():
            logger.info(f"Region {self.name} is not enabled, ignoring instance {instance_id}")
            return None

        self._prepare()

        try:
            instance = self.scan_instance(instance_id)
        except Exception as e:
            logger.error(f"{self.name} couldn't scan instance {instance_id}: {e}")
            raise

        logger.info(f"{self.name} found instance {instance_id} in state {instance.state}")
        return self.process_instance(instance, state)

    def handle_spot_interruption(self, instance_id: str, action: str) -> str:
        self.connect()
        return SpotTermination(self.autoscaling).execute_action(instance_id, action)

    def process_instance(self, instance: Instance, state: str) -> Optional[OperationResult]:
        """Run the decision engine for an instance and carry out its choice.

        Raises:
            ServiceError: If the chosen action fails
        """
        decision = decide(state, InstanceEligibility(instance, self))
        return self._execute(instance, decision)

    def _execute(self, instance: Instance, decision: Decision) -> Optional[OperationResult]:
        if decision.action == Action.NO_ACTION:
            logger.debug(f"{self.name} skipping instance {instance.instance_id}: {decision.reason}")
            return None

        logger.info(f"{self.name} instance {instance.instance_id} is {decision.reason}, "
                    f"attempting {decision.action.value}")
        executor = ReplacementExecutor(self)

        try:
            if decision.action == Action.LAUNCH_SPOT_REPLACEMENT:
                result = executor.launch_spot_replacement(instance)
            else:
                result = executor.swap_with_group_member(instance)
        except Exception as e:
            logger.error(f"{self.name} couldn't {decision.action.value} for {instance.instance_id}: {e}")
            raise

        total = self.context.savings.add(result.hourly_savings)
        logger.info(f"{self.name} {result.message}, saving ${result.hourly_savings:.4f}/hour "
                    f"(total ${total:.4f}/hour)")
        return result
