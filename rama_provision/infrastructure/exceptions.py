"""
Structured Exception Hierarchy

Provides the typed errors raised by the provisioning controller. Every failure
path of a control cycle surfaces as one of these, carrying an error code and
contextual information for diagnostics.
"""

from typing import Dict, List, Any, Optional
import uuid
from datetime import datetime, timezone


class ProvisionException(Exception):
    """
    Base exception class for all provisioning-specific exceptions.

    Provides structured error information including error codes,
    context data, and correlation IDs for tracing.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        correlation_id: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class ConfigurationError(ProvisionException):
    """
    Raised for invalid configuration: zero targets, unknown region types,
    indicators without response parameters, malformed config files.
    """

    def __init__(
        self,
        message: str,
        config_path: Optional[str] = None,
        validation_errors: Optional[List[Any]] = None,
        region_name: Optional[str] = None,
        indicator: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if config_path:
            context['config_path'] = config_path
        if validation_errors:
            context['validation_errors'] = validation_errors
        if region_name:
            context['region_name'] = region_name
        if indicator:
            context['indicator'] = indicator

        super().__init__(
            message=message,
            error_code=kwargs.pop('error_code', "CONFIG_ERROR"),
            context=context,
            **kwargs
        )


class InvalidBoundsError(ProvisionException):
    """Raised when a resource snapshot carries a lower bound above its upper bound."""

    def __init__(
        self,
        message: str,
        lower_bound: Optional[float] = None,
        upper_bound: Optional[float] = None,
        region_name: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if lower_bound is not None:
            context['lower_bound'] = lower_bound
        if upper_bound is not None:
            context['upper_bound'] = upper_bound
        if region_name:
            context['region_name'] = region_name

        super().__init__(
            message=message,
            error_code="INVALID_BOUNDS",
            context=context,
            **kwargs
        )


class IndicatorUnavailableError(ProvisionException):
    """Raised when a required indicator reading could not be obtained."""

    def __init__(
        self,
        message: str,
        indicators: Optional[List[str]] = None,
        region_name: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if indicators:
            context['indicators'] = list(indicators)
        if region_name:
            context['region_name'] = region_name

        super().__init__(
            message=message,
            error_code="INDICATOR_UNAVAILABLE",
            context=context,
            **kwargs
        )
        self.indicators = list(indicators or [])


class PolicyStateError(ProvisionException):
    """Raised when a policy operation is called in a state that does not allow it."""

    def __init__(
        self,
        message: str,
        region_name: Optional[str] = None,
        state: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if region_name:
            context['region_name'] = region_name
        if state:
            context['state'] = state

        super().__init__(
            message=message,
            error_code="POLICY_STATE_ERROR",
            context=context,
            **kwargs
        )


class RegistryError(ProvisionException):
    """Raised when region registry operations fail."""

    def __init__(
        self,
        message: str,
        region_name: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        if region_name:
            context['region_name'] = region_name
        if operation:
            context['operation'] = operation

        super().__init__(
            message=message,
            error_code="REGISTRY_ERROR",
            context=context,
            **kwargs
        )
