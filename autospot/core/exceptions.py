"""
Core exception classes for AutoSpot.
"""


class AutoSpotError(Exception):
    """Base exception for all AutoSpot errors."""
    
    def __init__(self, message: str, details: str = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(AutoSpotError):
    """Raised when configuration is invalid or missing."""
    pass


class ServiceError(AutoSpotError):
    """Raised when AWS service operations fail."""
    pass


class MetadataLoadError(AutoSpotError):
    """Raised when the instance type catalog cannot be loaded."""
    pass


class MalformedEventError(AutoSpotError):
    """Raised when an inbound event payload cannot be understood."""
    pass


class InstanceMissingError(ServiceError):
    """Raised when an instance named by an event cannot be found."""

    def __init__(self, region: str, instance_id: str):
        super().__init__(f"{region} instance {instance_id} is missing")
        self.region = region
        self.instance_id = instance_id
