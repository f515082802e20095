"""
Fleet controller: entry point dispatching events to region workers.
"""
from typing import Dict, List, Optional
import boto3
from concurrent.futures import ThreadPoolExecutor, as_completed
import logging

from .context import RuntimeContext
from .ec2 import EC2ServiceManager
from .filters import TagFilter
from .region import RegionJob
from ..core.config import Config
from ..core.exceptions import MetadataLoadError, ServiceError
from ..core.logging_setup import setup_logging
from ..core.savings import SavingsAccumulator
from ..events.classifier import RawPayload, classify_event
from ..events.triggers import InstanceStateChangeTrigger, SpotInterruptionTrigger, Trigger


logger = logging.getLogger(__name__)


class FleetController:
    """Replaces on-demand Auto Scaling instances with spot ones across regions.

    Built once per process. Configuration and the instance type catalog
    are read-only afterwards; the savings accumulator is the only state
    region workers share.
    """

    def __init__(
        self,
        config: Config,
        session: Optional[boto3.Session] = None,
        configure_logging: bool = True
    ):
        """Initialize the controller.

        Args:
            config: Loaded configuration
            session: boto3 session, a default one is created if omitted
            configure_logging: Install the package log handlers

        Raises:
            MetadataLoadError: If the instance type catalog cannot be loaded
        """
        if configure_logging:
            setup_logging(config)

        self.config = config
        self.session = session or boto3.Session()
        # Only used to list the other regions and load the type catalog
        self.main_ec2 = EC2ServiceManager(self.session, config.main_region)

        try:
            instance_types = self.main_ec2.load_instance_types(config.on_demand_prices)
        except ServiceError as e:
            raise MetadataLoadError(f"Could not load instance type information: {e.message}", details=e.details)

        self.context = RuntimeContext(
            config=config,
            session=self.session,
            instance_types=instance_types,
            savings=SavingsAccumulator()
        )

    @property
    def hourly_savings(self) -> float:
        return self.context.savings.read()

    def handle_event(self, payload: RawPayload = None) -> Trigger:
        """Classify an inbound event and dispatch it.

        Periodic scans never raise for failing regions. Malformed events
        and failures on the single-instance paths are raised to the caller.

        Args:
            payload: Raw event, None for a scheduled run

        Returns:
            The trigger the event was classified as

        Raises:
            MalformedEventError: If the payload cannot be understood
            ServiceError: If a single-instance action fails
        """
        trigger = classify_event(payload)

        if isinstance(trigger, SpotInterruptionTrigger):
            self.handle_spot_interruption(trigger)
        elif isinstance(trigger, InstanceStateChangeTrigger):
            self.handle_instance_state_change(trigger)
        else:
            try:
                self.run_periodic_scan()
            except ServiceError as e:
                logger.error(f"Periodic scan aborted: {e}")

        return trigger

    def run_periodic_scan(self) -> Dict[str, Optional[Exception]]:
        """Scan every region concurrently and wait for all of them.

        Returns:
            Outcome per region: None on success, or the exception it failed with

        Raises:
            ServiceError: If the regions cannot be enumerated
        """
        tag_filter = TagFilter.from_config(self.config)
        logger.debug(f"Group filtering mode '{tag_filter.mode}' with filter '{tag_filter.expression}'")

        regions = self.main_ec2.list_regions()
        outcomes = self.process_regions(regions, tag_filter)

        logger.info(f"Periodic scan complete, hourly savings so far: ${self.hourly_savings:.4f}")
        return outcomes

    def process_regions(self, regions: List[str], tag_filter: TagFilter) -> Dict[str, Optional[Exception]]:
        """Run one RegionJob per region in parallel, isolated from each other."""
        outcomes: Dict[str, Optional[Exception]] = {}
        if not regions:
            return outcomes

        with ThreadPoolExecutor(max_workers=len(regions), thread_name_prefix="region") as executor:
            future_to_region = {
                executor.submit(self._process_region, region, tag_filter): region
                for region in regions
            }

            for future in as_completed(future_to_region):
                region = future_to_region[future]
                try:
                    future.result()
                    outcomes[region] = None
                except Exception as e:
                    outcomes[region] = e
                    logger.error(f"Processing failed in {region}: {e}")

        failed = [r for r, error in outcomes.items() if error is not None]
        if failed:
            logger.warning(f"{len(failed)} of {len(regions)} regions failed: {', '.join(sorted(failed))}")
        return outcomes

    def _process_region(self, region: str, tag_filter: TagFilter) -> None:
        RegionJob(region, self.context, tag_filter).process_region()

    def handle_instance_state_change(self, trigger: InstanceStateChangeTrigger):
        job = RegionJob(trigger.region, self.context, TagFilter.from_config(self.config))
        return job.handle_instance_event(trigger.instance_id, trigger.new_state)

    def handle_spot_interruption(self, trigger: SpotInterruptionTrigger) -> str:
        job = RegionJob(trigger.region, self.context, TagFilter.from_config(self.config))
        return job.handle_spot_interruption(trigger.instance_id, self.config.termination_notification_action)
