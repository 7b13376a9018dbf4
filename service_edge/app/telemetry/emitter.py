"""
Telemetry emitter for the edge gateway.
"""

from typing import TYPE_CHECKING, Optional

from shared.logging import get_logger
from ..context import RequestContext
from .events import TelemetryEvent, TelemetryOutcome
from .sinks import AnalyticsSink

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class TelemetryEmitter:
    """Renders one telemetry record per request and hands it to the sink.

    emit() never raises: serialization and delivery failures are logged
    locally and reported through the return value.
    """

    def __init__(
        self,
        sink: AnalyticsSink,
        *,
        service_name: str = "edge-content-gateway",
        service_version: str = "1.0.0",
        legacy_field_names: bool = False,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.sink = sink
        self.service_name = service_name
        self.service_version = service_version
        self.legacy_field_names = legacy_field_names
        self.metrics = metrics
        self.logger = get_logger("edge.telemetry")

    def build_event(self, context: RequestContext, outcome: TelemetryOutcome) -> TelemetryEvent:
        return TelemetryEvent(
            service=self.service_name,
            version=self.service_version,
            context=context,
            outcome=outcome,
        )

    async def emit(self, context: RequestContext, outcome: TelemetryOutcome) -> bool:
        """Serialize and deliver the record for one request."""
        delivered = False
        try:
            record = self.build_event(context, outcome).serialize(self.legacy_field_names)
        except Exception as exc:
            self.logger.error(
                "Telemetry serialization error",
                path=context.path,
                event_type=outcome.event_type.value,
                error=str(exc),
            )
        else:
            try:
                await self.sink.send(record, key=context.path)
                delivered = True
                self.logger.debug("Telemetry record emitted", record=record)
            except Exception as exc:
                self.logger.error(
                    "Telemetry delivery error",
                    path=context.path,
                    event_type=outcome.event_type.value,
                    error=str(exc),
                )

        if self.metrics:
            self.metrics.increment_counter(
                "edge_telemetry_events_total",
                event_type=outcome.event_type.value,
                delivered=str(delivered).lower(),
            )
        return delivered
