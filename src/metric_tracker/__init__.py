"""
Metric Tracking Service

Records distance and temperature measurements in any supported unit and
timezone, and serves them as converted lists or gap-filled daily charts.
"""

from .core import MetricService, TimezoneResolver, UnitConverter
from .models import MetricType, ServiceConfig

__version__ = "0.1.0"
__all__ = ["MetricService", "TimezoneResolver", "UnitConverter", "MetricType", "ServiceConfig"]
