"""Tests for the region worker against moto."""

from unittest.mock import Mock, patch

import pytest

from autospot.core.config import Config
from autospot.core.exceptions import InstanceMissingError, ServiceError
from autospot.services.ec2 import EC2ServiceManager
from autospot.services.region import RegionJob

from conftest import REGION, make_instance


class TestRegionJobEnablement:

    def test_disabled_region_is_not_scanned(self, make_context):
        session = Mock()
        context = make_context(session=session, cfg=Config(regions=["us-*"]))
        job = RegionJob("eu-west-1", context, Mock())

        assert job.process_region() == []
        assert job.handle_instance_event("i-0123", "pending") is None
        session.client.assert_not_called()

    def test_enabled_by_pattern(self, make_context):
        context = make_context(session=Mock(), cfg=Config(regions=["eu-*"]))

        assert RegionJob("eu-west-1", context, Mock()).enabled()
        assert not RegionJob("us-east-1", context, Mock()).enabled()


class TestInstanceEvents:

    def test_pending_on_demand_instance_gets_spot_replacement(self, session, make_context, tag_filter, spot_enabled_group):
        context = make_context(session=session)
        on_demand_id = spot_enabled_group[0]

        result = RegionJob(REGION, context, tag_filter).handle_instance_event(on_demand_id, "pending")

        assert result is not None
        assert result.operation == "launch_spot_replacement"
        assert result.instance.instance_id == on_demand_id
        assert context.savings.read() == 0.0
        assert EC2ServiceManager(session, REGION).find_spot_replacement(on_demand_id) == result.related_instance_id

    def test_same_event_twice_launches_once(self, session, make_context, tag_filter, spot_enabled_group):
        context = make_context(session=session)
        on_demand_id = spot_enabled_group[0]

        first = RegionJob(REGION, context, tag_filter).handle_instance_event(on_demand_id, "pending")
        second = RegionJob(REGION, context, tag_filter).handle_instance_event(on_demand_id, "pending")

        assert first is not None
        assert second is None

    def test_minimum_on_demand_instances_are_kept(self, session, make_context, tag_filter, spot_enabled_group):
        context = make_context(session=session, cfg=Config(min_on_demand_number=2))

        result = RegionJob(REGION, context, tag_filter).handle_instance_event(spot_enabled_group[0], "pending")

        assert result is None

    def test_running_on_demand_instance_is_left_alone(self, session, make_context, tag_filter, spot_enabled_group):
        context = make_context(session=session)

        assert RegionJob(REGION, context, tag_filter).handle_instance_event(spot_enabled_group[0], "running") is None

    def test_missing_instance_is_reported(self, session, make_context, tag_filter, spot_enabled_group):
        job = RegionJob(REGION, make_context(session=session), tag_filter)

        with pytest.raises(InstanceMissingError) as excinfo:
            job.handle_instance_event("i-0123456789abcdef0", "pending")

        assert excinfo.value.region == REGION
        assert excinfo.value.instance_id == "i-0123456789abcdef0"


class TestPeriodicScan:

    def test_scan_discovers_groups_and_instances(self, session, make_context, tag_filter, spot_enabled_group):
        job = RegionJob(REGION, make_context(session=session), tag_filter)

        results = job.process_region()

        # Every instance is a running group member, nothing to swap
        assert results == []
        assert list(job.groups) == ["web"]
        assert set(job.instances) == set(spot_enabled_group)

    def test_failing_instance_does_not_stop_the_others(self, make_context, tag_filter):
        job = RegionJob(REGION, make_context(session=Mock()), tag_filter)
        instances = {i: make_instance(i, state="pending") for i in ("i-1", "i-2", "i-3")}
        done = Mock()

        def fake_scan():
            job.instances = dict(instances)

        def fake_process(instance, state):
            if instance.instance_id == "i-2":
                raise ServiceError("spot capacity not available")
            return done

        with patch.object(job, "_prepare"), \
             patch.object(job, "scan_instances", side_effect=fake_scan), \
             patch.object(job, "process_instance", side_effect=fake_process) as process:
            results = job.process_region()

        assert results == [done, done]
        assert process.call_count == 3

    def test_scan_failure_aborts_region(self, make_context, tag_filter):
        job = RegionJob(REGION, make_context(session=Mock()), tag_filter)

        with patch.object(job, "_prepare", side_effect=ServiceError("throttled")):
            with pytest.raises(ServiceError):
                job.process_region()
