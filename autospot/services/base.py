"""
Base service manager interface for AWS services.
"""
from abc import ABC, abstractmethod
from typing import Optional
import threading
import boto3
from datetime import datetime

from .models import Instance, OperationResult
from ..core.exceptions import ServiceError


# boto3 sessions are not thread-safe, region workers share one
_session_lock = threading.Lock()


class BaseServiceManager(ABC):
    """Abstract base class for region-scoped AWS service managers."""
    
    def __init__(self, session: boto3.Session, region: str):
        """Initialize the service manager with AWS session and region.
        
        Args:
            session: boto3 session
            region: AWS region to operate in
        """
        self.session = session
        self.region = region
        self._client = None
    
    @property
    def client(self):
        """Lazy-loaded AWS service client."""
        if self._client is None:
            with _session_lock:
                if self._client is None:
                    self._client = self.session.client(self.service_name, region_name=self.region)
        return self._client
    
    @property
    @abstractmethod
    def service_name(self) -> str:
        """AWS service name (e.g., 'ec2', 'autoscaling')."""
        pass
    
    def _create_operation_result(
        self,
        instance: Instance,
        operation: str,
        message: str,
        start_time: datetime,
        hourly_savings: float = 0.0,
        related_instance_id: Optional[str] = None
    ) -> OperationResult:
        """Helper method to create operation results.
        
        Args:
            instance: Instance the action was decided for
            operation: Action that was carried out
            message: Success message
            start_time: When the operation started
            hourly_savings: Realized hourly saving in USD
            related_instance_id: Launched or replaced instance, if any
            
        Returns:
            OperationResult instance
        """
        return OperationResult(
            instance=instance,
            operation=operation,
            message=message,
            timestamp=start_time,
            hourly_savings=hourly_savings,
            related_instance_id=related_instance_id,
            duration=(datetime.now() - start_time).total_seconds()
        )
    
    def _handle_aws_error(self, error: Exception, operation: str, resource_id: str = None) -> None:
        """Handle AWS API errors and convert to ServiceError.
        
        Args:
            error: The original AWS error
            operation: Operation that failed
            resource_id: ID of resource being operated on (if applicable)
            
        Raises:
            ServiceError: Wrapped error with context
        """
        resource_context = f" for resource {resource_id}" if resource_id else ""
        error_message = f"AWS {self.service_name} {operation} failed in {self.region}{resource_context}: {str(error)}"
        raise ServiceError(error_message, details=str(error)) from error
