"""
AutoSpot - replace on-demand Auto Scaling instances with cheaper spot ones.

Scans every enabled AWS region on a schedule and reacts to EC2 instance
lifecycle and spot interruption events to keep groups at capacity.
"""

__version__ = "1.0.0"

from autospot.core.exceptions import AutoSpotError

__all__ = ["AutoSpotError"]
