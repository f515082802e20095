"""
EC2 service manager for enumerating regions and instances and launching
spot replacements.
"""
from typing import Dict, List, Optional
from datetime import datetime, timezone
import logging

from botocore.exceptions import ClientError

from .base import BaseServiceManager
from .models import (
    Instance, InstanceTypeInfo, OperationResult,
    LAUNCHED_FOR_ASG_TAG, REPLACING_INSTANCE_TAG,
)


logger = logging.getLogger(__name__)

# Instances in these states are gone for good and never acted upon
GONE_STATES = ('shutting-down', 'terminated')


class EC2ServiceManager(BaseServiceManager):
    """Service manager for EC2 instances."""
    
    @property
    def service_name(self) -> str:
        return 'ec2'
    
    def list_regions(self) -> List[str]:
        """List all regions available to the account.
        
        Raises:
            ServiceError: If the regions cannot be described
        """
        logger.info("Scanning for available AWS regions")
        try:
            response = self.client.describe_regions()
        except Exception as e:
            self._handle_aws_error(e, 'region enumeration')
        
        regions = []
        for region in response.get('Regions', []):
            name = region.get('RegionName')
            if name:
                logger.debug(f"Found region {name}")
                regions.append(name)
        return regions
    
    def load_instance_types(self, on_demand_prices: Optional[Dict[str, float]] = None) -> Dict[str, InstanceTypeInfo]:
        """Load static facts about every instance type offered.
        
        Args:
            on_demand_prices: Optional hourly list prices by instance type
            
        Returns:
            Mapping of instance type name to InstanceTypeInfo
            
        Raises:
            ServiceError: If the instance types cannot be described
        """
        prices = on_demand_prices or {}
        catalog = {}
        try:
            paginator = self.client.get_paginator('describe_instance_types')
            for page in paginator.paginate():
                for item in page['InstanceTypes']:
                    name = item['InstanceType']
                    catalog[name] = InstanceTypeInfo(
                        instance_type=name,
                        vcpus=item.get('VCpuInfo', {}).get('DefaultVCpus', 0),
                        memory_mib=item.get('MemoryInfo', {}).get('SizeInMiB', 0),
                        spot_supported='spot' in item.get('SupportedUsageClasses', []),
                        on_demand_price=prices.get(name)
                    )
        except Exception as e:
            self._handle_aws_error(e, 'instance type discovery')
        
        logger.info(f"Loaded information about {len(catalog)} instance types")
        return catalog
    
    def scan_instances(self, instance_ids: Optional[List[str]] = None) -> List[Instance]:
        """Enumerate live instances in the region.

        Args:
            instance_ids: Restrict the scan to these instances

        Raises:
            ServiceError: If discovery fails
        """
        params = {}
        if instance_ids:
            params['Filters'] = [{'Name': 'instance-id', 'Values': list(instance_ids)}]

        instances = []
        try:
            paginator = self.client.get_paginator('describe_instances')
            for page in paginator.paginate(**params):
                for reservation in page['Reservations']:
                    for data in reservation['Instances']:
                        if data['State']['Name'] in GONE_STATES:
                            continue
                        instances.append(self._to_instance(data))
        except Exception as e:
            self._handle_aws_error(e, 'instance discovery')
        
        logger.debug(f"{self.region} found {len(instances)} instances")
        return instances
    
    def scan_instance(self, instance_id: str) -> Optional[Instance]:
        """Describe a single instance.
        
        Returns:
            The instance, or None when it does not exist
            
        Raises:
            ServiceError: If the lookup fails for any other reason
        """
        try:
            response = self.client.describe_instances(InstanceIds=[instance_id])
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'InvalidInstanceID.NotFound':
                return None
            self._handle_aws_error(e, 'instance lookup', instance_id)
        except Exception as e:
            self._handle_aws_error(e, 'instance lookup', instance_id)
        
        for reservation in response.get('Reservations', []):
            for data in reservation['Instances']:
                if data['InstanceId'] == instance_id:
                    return self._to_instance(data)
        return None
    
    def find_spot_replacement(self, instance_id: str) -> Optional[str]:
        """Return the ID of a live spot instance launched to replace instance_id."""
        try:
            response = self.client.describe_instances(Filters=[
                {'Name': f'tag:{REPLACING_INSTANCE_TAG}', 'Values': [instance_id]},
                {'Name': 'instance-state-name', 'Values': ['pending', 'running']},
            ])
        except Exception as e:
            self._handle_aws_error(e, 'spot replacement lookup', instance_id)
        
        for reservation in response.get('Reservations', []):
            for data in reservation['Instances']:
                return data['InstanceId']
        return None
    
    def launch_spot_replacement(self, instance: Instance, group_name: str) -> OperationResult:
        """Launch a one-time spot instance mirroring an on-demand instance.
        
        The new instance is tagged with the group it is meant for and the
        instance it replaces, so it can be swapped in once it is running.
        
        Raises:
            ServiceError: If the launch fails
        """
        start_time = datetime.now()
        
        tags = [
            {'Key': LAUNCHED_FOR_ASG_TAG, 'Value': group_name},
            {'Key': REPLACING_INSTANCE_TAG, 'Value': instance.instance_id},
        ]
        for key, value in instance.tags.items():
            if key.startswith('aws:'):
                continue
            tags.append({'Key': key, 'Value': value})
        
        params = {
            'ImageId': instance.image_id,
            'InstanceType': instance.instance_type,
            'MinCount': 1,
            'MaxCount': 1,
            'InstanceMarketOptions': {
                'MarketType': 'spot',
                'SpotOptions': {'SpotInstanceType': 'one-time'}
            },
            'TagSpecifications': [{'ResourceType': 'instance', 'Tags': tags}],
        }
        if instance.subnet_id:
            params['SubnetId'] = instance.subnet_id
        elif instance.availability_zone:
            params['Placement'] = {'AvailabilityZone': instance.availability_zone}
        if instance.security_group_ids:
            params['SecurityGroupIds'] = instance.security_group_ids
        if instance.key_name:
            params['KeyName'] = instance.key_name
        
        try:
            response = self.client.run_instances(**params)
        except Exception as e:
            self._handle_aws_error(e, 'spot launch', instance.instance_id)
        
        spot_id = response['Instances'][0]['InstanceId']
        logger.info(f"{self.region} launched spot instance {spot_id} to replace {instance.instance_id}")
        
        # Nothing is saved until the spot instance takes the on-demand one's place
        return self._create_operation_result(
            instance=instance,
            operation='launch_spot_replacement',
            message=f"Launched spot instance {spot_id} for {instance.instance_id} in group {group_name}",
            start_time=start_time,
            related_instance_id=spot_id
        )
    
    def latest_spot_price(self, instance_type: str, availability_zone: Optional[str]) -> Optional[float]:
        """Return the most recent Linux spot price for a type, if known."""
        params = {
            'InstanceTypes': [instance_type],
            'ProductDescriptions': ['Linux/UNIX'],
            'StartTime': datetime.now(timezone.utc),
        }
        if availability_zone:
            params['AvailabilityZone'] = availability_zone
        
        try:
            response = self.client.describe_spot_price_history(**params)
        except Exception as e:
            logger.warning(f"{self.region} could not read spot price of {instance_type}: {e}")
            return None
        
        history = sorted(
            response.get('SpotPriceHistory', []),
            key=lambda entry: entry.get('Timestamp') or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True
        )
        for entry in history:
            try:
                return float(entry['SpotPrice'])
            except (KeyError, ValueError):
                continue
        return None
    
    def _to_instance(self, data: dict) -> Instance:
        tags = {}
        for tag in data.get('Tags', []):
            tags[tag['Key']] = tag['Value']
        
        return Instance(
            instance_id=data['InstanceId'],
            region=self.region,
            state=data['State']['Name'],
            instance_type=data['InstanceType'],
            lifecycle=data.get('InstanceLifecycle') or 'on-demand',
            tags=tags,
            availability_zone=data.get('Placement', {}).get('AvailabilityZone'),
            image_id=data.get('ImageId'),
            subnet_id=data.get('SubnetId'),
            security_group_ids=[sg['GroupId'] for sg in data.get('SecurityGroups', [])],
            key_name=data.get('KeyName'),
            launch_time=data.get('LaunchTime')
        )
