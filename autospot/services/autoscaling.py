"""
Auto Scaling service manager for discovering enabled groups and changing
their membership.
"""
from typing import Dict, Optional
from datetime import datetime
import logging

from .base import BaseServiceManager
from .filters import TagFilter
from .models import AutoScalingGroup, Instance, OperationResult


logger = logging.getLogger(__name__)


class AutoScalingServiceManager(BaseServiceManager):
    """Service manager for Auto Scaling Groups."""
    
    @property
    def service_name(self) -> str:
        return 'autoscaling'
    
    def scan_groups(self, tag_filter: TagFilter) -> Dict[str, AutoScalingGroup]:
        """Discover the Auto Scaling groups enabled by the tag filter.
        
        Args:
            tag_filter: Resolved opt-in/opt-out tag filter
            
        Returns:
            Enabled groups keyed by name
            
        Raises:
            ServiceError: If discovery fails
        """
        groups = {}
        try:
            paginator = self.client.get_paginator('describe_auto_scaling_groups')
            
            for page in paginator.paginate():
                for asg in page['AutoScalingGroups']:
                    tags = {}
                    for tag in asg.get('Tags', []):
                        tags[tag['Key']] = tag['Value']
                    
                    if not tag_filter.enables(tags):
                        continue
                    
                    groups[asg['AutoScalingGroupName']] = AutoScalingGroup(
                        name=asg['AutoScalingGroupName'],
                        region=self.region,
                        tags=tags,
                        min_size=asg['MinSize'],
                        max_size=asg['MaxSize'],
                        desired_capacity=asg['DesiredCapacity'],
                        members={
                            instance['InstanceId']: instance['LifecycleState']
                            for instance in asg.get('Instances', [])
                        }
                    )
        except Exception as e:
            self._handle_aws_error(e, 'group discovery')
        
        logger.info(f"{self.region} found {len(groups)} enabled Auto Scaling groups "
                    f"({tag_filter.mode}, {tag_filter.expression})")
        return groups
    
    def group_of_instance(self, instance_id: str) -> Optional[str]:
        """Return the name of the group an instance belongs to, if any."""
        try:
            response = self.client.describe_auto_scaling_instances(InstanceIds=[instance_id])
        except Exception as e:
            self._handle_aws_error(e, 'instance membership lookup', instance_id)
        
        for item in response.get('AutoScalingInstances', []):
            return item['AutoScalingGroupName']
        return None
    
    def has_lifecycle_hooks(self, group_name: str) -> bool:
        try:
            response = self.client.describe_lifecycle_hooks(AutoScalingGroupName=group_name)
        except Exception as e:
            self._handle_aws_error(e, 'lifecycle hook lookup', group_name)
        return len(response.get('LifecycleHooks', [])) > 0
    
    def detach_instance(self, group_name: str, instance_id: str) -> None:
        """Detach an instance, letting the group launch a replacement."""
        try:
            self.client.detach_instances(
                InstanceIds=[instance_id],
                AutoScalingGroupName=group_name,
                ShouldDecrementDesiredCapacity=False
            )
        except Exception as e:
            self._handle_aws_error(e, 'detach', instance_id)
    
    def terminate_instance(self, instance_id: str, decrement_capacity: bool) -> None:
        try:
            self.client.terminate_instance_in_auto_scaling_group(
                InstanceId=instance_id,
                ShouldDecrementDesiredCapacity=decrement_capacity
            )
        except Exception as e:
            self._handle_aws_error(e, 'terminate', instance_id)
    
    def swap_members(
        self,
        group: AutoScalingGroup,
        spot_instance: Instance,
        on_demand_instance_id: str,
        hourly_savings: float = 0.0
    ) -> OperationResult:
        """Attach a spot instance and terminate an on-demand member in its place.
        
        The group's maximum size is raised by one for the duration of the
        swap when it is already at capacity, and restored afterwards.
        
        Args:
            group: Group the spot instance was launched for
            spot_instance: Running spot instance to attach
            on_demand_instance_id: Member terminated in its place
            hourly_savings: Saving realized once the swap succeeds
            
        Returns:
            OperationResult of the swap
            
        Raises:
            ServiceError: If any of the membership calls fail
        """
        start_time = datetime.now()
        spot_instance_id = spot_instance.instance_id
        raised_max = group.desired_capacity >= group.max_size
        
        try:
            if raised_max:
                logger.debug(f"{self.region} raising max size of {group.name} to {group.max_size + 1}")
                self.client.update_auto_scaling_group(
                    AutoScalingGroupName=group.name,
                    MaxSize=group.max_size + 1
                )
            
            self.client.attach_instances(
                InstanceIds=[spot_instance_id],
                AutoScalingGroupName=group.name
            )
            self.client.terminate_instance_in_auto_scaling_group(
                InstanceId=on_demand_instance_id,
                ShouldDecrementDesiredCapacity=True
            )
        except Exception as e:
            self._handle_aws_error(e, 'swap', spot_instance_id)
        finally:
            if raised_max:
                self._restore_max_size(group)
        
        group.members[spot_instance_id] = 'InService'
        group.members.pop(on_demand_instance_id, None)
        
        return self._create_operation_result(
            instance=spot_instance,
            operation='swap_with_group_member',
            message=f"Replaced {on_demand_instance_id} with {spot_instance_id} in {group.name}",
            start_time=start_time,
            hourly_savings=hourly_savings,
            related_instance_id=on_demand_instance_id
        )
    
    def _restore_max_size(self, group: AutoScalingGroup) -> None:
        try:
            self.client.update_auto_scaling_group(
                AutoScalingGroupName=group.name,
                MaxSize=group.max_size
            )
        except Exception as e:
            logger.error(f"{self.region} could not restore max size of {group.name} to {group.max_size}: {e}")
