"""
Processing strategy for client tracking events.

Validates the event, flattens it into an aggregate payload, and writes the
payload to DynamoDB under a random export partition shard so that writes are
spread across the table's partitions.
"""

import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit

from service.dal import StoreClient
from service.events.dispatcher import EventBusMessageProcessor, ProcessorContext
from service.events.event_schemas import EventBusMessage
from service.events.outcome import OutcomeKind, ProcessingOutcome
from service.events.registry import EventRegistry
from service.handlers.utils.observability import logger, metrics, tracer
from service.models.client_tracking import (
    CLIENT_TRACKING_SUBJECT,
    ClientTrackingAggregatePayload,
    ClientTrackingEvent,
)

EXPORT_PARTITION_PREFIX = 'EXPORT-'

# Shard choice only spreads load; it needs no cryptographic quality.
_export_partition_rand = random.Random()


def _stringify(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


class ClientTrackingStrategy(EventBusMessageProcessor):
    """Validate, transform and persist client tracking events."""

    def __init__(self, dynamodb_client: StoreClient, partition_count: int):
        if partition_count <= 0:
            raise ValueError("partition_count must be a positive integer")
        self.dynamodb_client = dynamodb_client
        self.partition_count = partition_count

    @classmethod
    def from_context(cls, context: ProcessorContext) -> 'ClientTrackingStrategy':
        """Build the strategy from the collaborators it requires."""
        return cls(
            dynamodb_client=context.require('dynamodb_client', subject=CLIENT_TRACKING_SUBJECT),
            partition_count=context.require('partition_count', subject=CLIENT_TRACKING_SUBJECT),
        )

    @tracer.capture_method
    async def process_event(
        self,
        message: EventBusMessage,
        deadline: Optional[float] = None,
    ) -> ProcessingOutcome:
        """
        Process a client tracking event.

        Invalid events are logged and acknowledged as a success without any
        write, since retrying them can never succeed. A failed write is
        reported as a failure carrying the attempted payload.
        """
        client_event = self.validate(message)
        if client_event is None:
            metrics.add_metric(name="EventsDroppedInvalid", unit=MetricUnit.Count, value=1)
            return ProcessingOutcome.dropped("Invalid event, treating as success", context=message)

        payload = self.build_aggregate_payload(client_event)

        try:
            await self.put_aggregate(payload, deadline=deadline)
        except Exception as e:
            logger.exception("Failed to save client event to DynamoDB", extra={"org_number": payload.org_number})
            return ProcessingOutcome.failed(
                OutcomeKind.PERSIST_FAILED,
                f"Error saving to DynamoDB: {e!r}",
                context=payload,
            )

        metrics.add_metric(name="EventsPersisted", unit=MetricUnit.Count, value=1)
        return ProcessingOutcome.persisted("Client event saved to DynamoDB", context=payload)

    def validate(self, message: EventBusMessage) -> Optional[ClientTrackingEvent]:
        """Return the event when it can be persisted, None otherwise."""
        if not isinstance(message, ClientTrackingEvent):
            logger.error("Invalid event type for ClientTrackingStrategy", extra={"event_type": type(message).__name__})
            return None

        required = (
            ('org_number', 'Missing OrgNumber in ClientTrackingEvent'),
            ('time_zone_id', 'Missing TimeZoneId in ClientTrackingEvent'),
            ('mac_address', 'Missing MacAddress in ClientTrackingEvent'),
        )
        for field_name, error_message in required:
            if not getattr(message, field_name).strip():
                logger.error(error_message, extra={"client_tracking_event": message.model_dump(mode='json', by_alias=True)})
                return None
        return message

    @staticmethod
    def build_aggregate_payload(event: ClientTrackingEvent) -> ClientTrackingAggregatePayload:
        """Flatten every event field into a string map and wrap it for export."""
        properties = {key: _stringify(value) for key, value in event.model_dump(by_alias=True).items()}

        return ClientTrackingAggregatePayload(
            event_name=CLIENT_TRACKING_SUBJECT,
            org_number=event.org_number,
            properties=properties,
            ready_to_export_utc=int(datetime.now(timezone.utc).timestamp()),
            exported_at=None,
        )

    def export_partition_shard(self) -> str:
        """Pick a random export partition shard."""
        return f"{EXPORT_PARTITION_PREFIX}{_export_partition_rand.randrange(self.partition_count)}"

    def build_item(self, payload: ClientTrackingAggregatePayload) -> Dict[str, Any]:
        """Convert a payload into a DynamoDB item."""
        item: Dict[str, Any] = {
            'EventName': payload.event_name,
            'OrgNumber': payload.org_number,
            'ExportPartition': self.export_partition_shard(),
            'ReadyToExportUtc': payload.ready_to_export_utc,
            'ExportedAt': payload.exported_at,
        }
        if payload.properties:
            item['Properties'] = dict(payload.properties)
        return item

    async def put_aggregate(self, payload: ClientTrackingAggregatePayload, deadline: Optional[float] = None) -> Dict[str, Any]:
        """Write the payload as a new aggregate row."""
        item = self.build_item(payload)
        logger.debug("Writing client tracking aggregate", extra={
            "org_number": payload.org_number,
            "export_partition": item['ExportPartition'],
        })
        return await self.dynamodb_client.put_item(item, deadline=deadline)


def register_client_tracking_events(registry: EventRegistry) -> None:
    """Register the client tracking event kind and its strategy."""
    registry.register(
        CLIENT_TRACKING_SUBJECT,
        ClientTrackingEvent,
        ClientTrackingStrategy.from_context,
    )
