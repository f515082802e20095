"""
Handling of spot instance interruption warnings.
"""
import logging

from .autoscaling import AutoScalingServiceManager


logger = logging.getLogger(__name__)


class SpotTermination:
    """Takes an interrupted spot instance out of its Auto Scaling group."""

    def __init__(self, autoscaling: AutoScalingServiceManager):
        self.autoscaling = autoscaling

    @property
    def region(self) -> str:
        return self.autoscaling.region

    def execute_action(self, instance_id: str, action: str) -> str:
        """Detach or terminate an instance about to be interrupted.

        Args:
            instance_id: Spot instance that received the warning
            action: 'auto', 'detach' or 'terminate'

        Returns:
            The action actually taken, or 'none' if the instance has no group

        Raises:
            ServiceError: If the Auto Scaling calls fail
        """
        group_name = self.autoscaling.group_of_instance(instance_id)
        if group_name is None:
            logger.info(f"{self.region} instance {instance_id} is not in an Auto Scaling group, nothing to do")
            return 'none'

        if action == 'auto':
            if self.autoscaling.has_lifecycle_hooks(group_name):
                action = 'terminate'
            else:
                action = 'detach'

        if action == 'terminate':
            logger.info(f"{self.region} terminating {instance_id} in {group_name} so its lifecycle hooks run")
            self.autoscaling.terminate_instance(instance_id, decrement_capacity=False)
        else:
            logger.info(f"{self.region} detaching {instance_id} from {group_name}")
            self.autoscaling.detach_instance(group_name, instance_id)

        return action
