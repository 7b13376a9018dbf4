"""
Telemetry package.

One record per request, rendered to a fixed schema and handed to an analytics
sink (log channel or Kafka topic). Delivery durability is the sink's concern.
"""

from .emitter import TelemetryEmitter
from .events import TelemetryEvent, TelemetryOutcome
from .sinks import AnalyticsSink, KafkaAnalyticsSink, LogAnalyticsSink

__all__ = [
    "AnalyticsSink",
    "KafkaAnalyticsSink",
    "LogAnalyticsSink",
    "TelemetryEmitter",
    "TelemetryEvent",
    "TelemetryOutcome",
]
