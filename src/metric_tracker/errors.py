"""Error types raised by the metric tracking core.

Validation errors describe caller input defects and are surfaced as client
faults. Infrastructure errors come from the storage layer and are passed
through to the caller untouched.
"""

from typing import Any, Dict, Optional


class MetricTrackerError(Exception):
    """Base class for all metric tracker errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dict for logging and API responses."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class MetricValidationError(MetricTrackerError):
    """Caller supplied invalid input."""


class InvalidUnit(MetricValidationError):
    """Unit identifier is not valid for the metric type."""


class InvalidTimezone(MetricValidationError):
    """Timezone identifier is malformed or unknown to the timezone database."""


class InvalidDateFormat(MetricValidationError):
    """Date or datetime text could not be parsed."""


class InvalidMetric(MetricValidationError):
    """Metric record violates an entity invariant."""


class InvalidDateRange(MetricValidationError):
    """Requested chart range is too large."""


class InfrastructureError(MetricTrackerError):
    """Storage backend failure."""
