"""
Analytics sinks for telemetry records.
"""

import asyncio
import logging
from typing import Optional, Protocol

from kafka import KafkaProducer
from kafka.errors import KafkaError

from shared.logging import get_logger
from shared.errors import TelemetrySinkError


class AnalyticsSink(Protocol):
    """Accepts one serialized record per call."""

    async def send(self, record: str, key: Optional[str] = None) -> None:
        ...


class LogAnalyticsSink:
    """Writes each record as one line on the analytics log channel.

    Uses a plain stdlib logger so the line is the record itself, not a
    structlog envelope around it.
    """

    def __init__(self, channel: str = "analytics.requests"):
        self.channel = logging.getLogger(channel)

    async def send(self, record: str, key: Optional[str] = None) -> None:
        self.channel.info(record)


class KafkaAnalyticsSink:
    """Publishes telemetry records to a Kafka topic."""

    def __init__(self, bootstrap_servers: str, topic: str, send_timeout: float = 10.0):
        self.bootstrap_servers = bootstrap_servers
        self.topic = topic
        self.send_timeout = send_timeout
        self.logger = get_logger("edge.telemetry.kafka")
        self.producer: Optional[KafkaProducer] = None

    async def start(self):
        """Start the Kafka producer."""
        try:
            self.producer = KafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda x: x.encode('utf-8'),
                key_serializer=lambda x: x.encode('utf-8') if x else None,
                acks=1,
                linger_ms=10,
                compression_type='gzip'
            )
            self.logger.info("Kafka producer started", topic=self.topic)

        except Exception as e:
            self.logger.error("Failed to start Kafka producer", error=str(e))
            raise TelemetrySinkError(str(e), {"bootstrap_servers": self.bootstrap_servers})

    async def stop(self):
        """Stop the Kafka producer."""
        if self.producer:
            self.producer.flush()
            self.producer.close()
            self.producer = None
            self.logger.info("Kafka producer stopped")

    async def send(self, record: str, key: Optional[str] = None) -> None:
        """Send one record and wait for the broker acknowledgement."""
        if not self.producer:
            raise TelemetrySinkError("Producer not started", {"topic": self.topic})

        try:
            future = self.producer.send(self.topic, value=record, key=key)
            record_metadata = await asyncio.to_thread(future.get, timeout=self.send_timeout)
        except KafkaError as e:
            raise TelemetrySinkError(str(e), {"topic": self.topic}) from e

        self.logger.debug(
            "Telemetry record sent",
            topic=self.topic,
            partition=record_metadata.partition,
            offset=record_metadata.offset
        )
