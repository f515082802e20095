"""Tests for the CLI entry point and the Lambda handler."""

import json
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from autospot import handler
from autospot.cli.main import (
    main, EXIT_SUCCESS, EXIT_CONFIG_ERROR, EXIT_SERVICE_ERROR, EXIT_MALFORMED_EVENT, EXIT_METADATA_ERROR
)
from autospot.core.config import Config
from autospot.core.exceptions import ConfigurationError, MalformedEventError, MetadataLoadError, ServiceError
from autospot.events.triggers import CronTrigger, InstanceStateChangeTrigger


@pytest.fixture
def mocks():
    with patch('autospot.cli.main.ConfigManager') as MockConfigManager, \
         patch('autospot.cli.main.FleetController') as MockController:
        MockConfigManager.return_value.load_config.return_value = Config()
        controller = Mock()
        controller.handle_event.return_value = CronTrigger()
        controller.hourly_savings = 0.12
        MockController.return_value = controller
        yield MockConfigManager, MockController, controller


class TestCLIMainEntryPoint:

    def test_periodic_scan_by_default(self, mocks):
        _, MockController, controller = mocks

        result = CliRunner().invoke(main, [])

        assert result.exit_code == EXIT_SUCCESS
        controller.handle_event.assert_called_once_with(None)
        assert "CronTrigger" in result.output
        assert "0.1200" in result.output

    def test_event_from_stdin(self, mocks):
        _, _, controller = mocks
        controller.handle_event.return_value = InstanceStateChangeTrigger("us-east-1", "i-0456", "pending")
        event = json.dumps({"detail-type": "EC2 Instance State-change Notification"})

        result = CliRunner().invoke(main, ['--event', '-'], input=event)

        assert result.exit_code == EXIT_SUCCESS
        controller.handle_event.assert_called_once_with(event)

    def test_config_path_and_debug(self, mocks, tmp_path):
        MockConfigManager, MockController, _ = mocks
        config_file = tmp_path / "config.json"

        result = CliRunner().invoke(main, ['--config', str(config_file), '--debug'])

        assert result.exit_code == EXIT_SUCCESS
        MockConfigManager.assert_called_once_with(config_file)
        assert MockController.call_args[0][0].debug is True

    @pytest.mark.parametrize("error,exit_code", [
        (ServiceError("launch failed"), EXIT_SERVICE_ERROR),
        (MalformedEventError("bad event"), EXIT_MALFORMED_EVENT),
    ])
    def test_handling_errors_map_to_exit_codes(self, mocks, error, exit_code):
        _, _, controller = mocks
        controller.handle_event.side_effect = error

        result = CliRunner().invoke(main, [])

        assert result.exit_code == exit_code

    def test_configuration_error(self, mocks):
        MockConfigManager, _, _ = mocks
        MockConfigManager.return_value.load_config.side_effect = ConfigurationError("bad file")

        result = CliRunner().invoke(main, [])

        assert result.exit_code == EXIT_CONFIG_ERROR
        assert "Configuration error" in result.output

    def test_metadata_error(self, mocks):
        _, MockController, _ = mocks
        MockController.side_effect = MetadataLoadError("no instance types")

        result = CliRunner().invoke(main, [])

        assert result.exit_code == EXIT_METADATA_ERROR


class TestLambdaHandler:

    def test_controller_is_reused(self):
        controller = Mock()
        controller.handle_event.return_value = CronTrigger()
        controller.hourly_savings = 0.0

        with patch.object(handler, '_controller', None), \
             patch('autospot.handler.ConfigManager'), \
             patch('autospot.handler.FleetController', return_value=controller) as MockController:
            first = handler.lambda_handler({}, None)
            handler.lambda_handler({"detail-type": "Scheduled Event"}, None)

        assert MockController.call_count == 1
        assert first == {'trigger': 'CronTrigger', 'hourly_savings': 0.0}
        controller.handle_event.assert_any_call(None)
        controller.handle_event.assert_any_call({"detail-type": "Scheduled Event"})
