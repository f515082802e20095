"""
AWS Lambda entry point.

The controller is built on the first invocation of an execution context
and reused by the following ones.
"""
import logging
from typing import Any, Dict, Optional

from autospot.core.config import ConfigManager
from autospot.services.controller import FleetController


logger = logging.getLogger(__name__)

_controller: Optional[FleetController] = None


def get_controller() -> FleetController:
    global _controller
    if _controller is None:
        _controller = FleetController(ConfigManager().load_config())
    return _controller


def lambda_handler(event: Optional[Dict[str, Any]], context: Any = None) -> Dict[str, Any]:
    controller = get_controller()
    trigger = controller.handle_event(event or None)
    return {
        'trigger': type(trigger).__name__,
        'hourly_savings': controller.hourly_savings
    }
