"""
Batch processing of queued event messages.

Each record runs through normalize -> decode -> dispatch -> strategy, then its
outcome decides whether the source message is deleted, forwarded to the
dead-letter queue and deleted, or left on the queue for redelivery. Records
are processed one after another; a failure in one never stops the rest,
except a missing capability, which means the deployment itself is broken.
"""

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Dict, Iterable, List, Optional

from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord

from service.dal import QueueClient
from service.handlers.utils.errors import CapabilityNotRegisteredError
from service.handlers.utils.execution_budget import SETTLE_FLOOR_MS, execution_deadline
from service.handlers.utils.observability import logger, metrics, tracer

from .decoder import EventDecoder
from .dispatcher import EventDispatcher
from .envelope import normalize_message_body
from .event_schemas import EventBusMessage
from .outcome import DecodeResult, OutcomeKind, ProcessingOutcome


class MessageDisposition(str, Enum):
    """Final state of a source message after processing."""

    ACKNOWLEDGED = 'Acknowledged'
    DEAD_LETTERED = 'DeadLettered'
    RETAINED = 'Retained'


@dataclass
class MessageResult:
    """What happened to one source message."""

    message_id: str
    outcome: ProcessingOutcome
    disposition: MessageDisposition
    dead_letter_status: Optional[int] = None
    delete_status: Optional[int] = None
    delete_error: Optional[str] = None

    @property
    def deleted(self) -> bool:
        return self.delete_status == HTTPStatus.OK


@dataclass
class BatchResult:
    """Per-message results of one batch."""

    results: List[MessageResult] = field(default_factory=list)

    @property
    def retained(self) -> List[MessageResult]:
        return [r for r in self.results if r.disposition == MessageDisposition.RETAINED]

    def count(self, disposition: MessageDisposition) -> int:
        return sum(1 for r in self.results if r.disposition == disposition)

    def summary(self) -> Dict[str, Any]:
        return {
            "record_count": len(self.results),
            "acknowledged": self.count(MessageDisposition.ACKNOWLEDGED),
            "dead_lettered": self.count(MessageDisposition.DEAD_LETTERED),
            "retained": self.count(MessageDisposition.RETAINED),
        }

    def batch_item_failures(self) -> Dict[str, List[Dict[str, str]]]:
        """SQS partial batch response listing the messages left for redelivery."""
        return {"batchItemFailures": [{"itemIdentifier": r.message_id} for r in self.retained]}


class EventProcessor:
    """Drives every record of a batch through the pipeline and settles its fate."""

    def __init__(
        self,
        decoder: EventDecoder,
        dispatcher: EventDispatcher,
        sqs_client: QueueClient,
        dlq_url: str,
    ):
        if not dlq_url:
            raise ValueError("dlq_url is required")
        self.decoder = decoder
        self.dispatcher = dispatcher
        self.sqs_client = sqs_client
        self.dlq_url = dlq_url

    async def process_batch(
        self,
        records: Iterable[SQSRecord],
        remaining_time_ms: Optional[int] = None,
        safety_margin_ms: int = 0,
    ) -> BatchResult:
        """
        Process a batch of records sequentially.

        Args:
            records: Records delivered in one invocation
            remaining_time_ms: Execution budget left for the invocation
            safety_margin_ms: Part of the budget reserved for the resilience path;
                strategies must finish before it begins, dead-letter sends and
                deletes may use it

        Returns:
            BatchResult with one MessageResult per record

        Raises:
            CapabilityNotRegisteredError: If a strategy cannot be built
        """
        deadline = execution_deadline(remaining_time_ms, safety_margin_ms)
        settle_deadline = execution_deadline(remaining_time_ms, min(SETTLE_FLOOR_MS, safety_margin_ms))
        records = list(records)
        batch = BatchResult()

        logger.debug("EventProcessor invoked", extra={"record_count": len(records)})
        if not records:
            logger.warning("No records found in SQS event")
            return batch

        for record in records:
            result = await self.process_record(record, deadline=deadline, settle_deadline=settle_deadline)
            batch.results.append(result)

        logger.info("Batch processed", extra=batch.summary())
        return batch

    @tracer.capture_method
    async def process_record(
        self,
        record: SQSRecord,
        deadline: Optional[float] = None,
        settle_deadline: Optional[float] = None,
    ) -> MessageResult:
        """
        Process one record and settle it by delete or dead-letter.

        Args:
            record: Record to process
            deadline: Loop time bounding decode and strategy work
            settle_deadline: Loop time bounding the delete and dead-letter calls;
                defaults to ``deadline``
        """
        if settle_deadline is None:
            settle_deadline = deadline
        metrics.add_metric(name="MessagesReceived", unit=MetricUnit.Count, value=1)
        event: Optional[EventBusMessage] = None

        try:
            decoded = self.decode(record.body)
            if decoded.ok:
                event = decoded.event
                outcome = await self.dispatcher.dispatch(event, deadline=deadline)
            else:
                metrics.add_metric(name="DecodeFailures", unit=MetricUnit.Count, value=1)
                logger.error("Failed to deserialize SQS record", extra={
                    "message_id": record.message_id,
                    "error_kind": decoded.error_kind.value,
                    "detail": decoded.detail,
                })
                outcome = ProcessingOutcome.failed(OutcomeKind.DECODE_FAILED, decoded.detail, context=record.body)
        except CapabilityNotRegisteredError:
            raise
        except Exception as e:
            logger.exception("Error processing event data", extra={"message_id": record.message_id})
            outcome = ProcessingOutcome.failed(OutcomeKind.PROCESSING_ERROR, repr(e), context=event)

        if outcome.success:
            return await self.handle_successful_message(record, outcome, deadline=settle_deadline)

        logger.warning("Failed to process event data", extra={
            "message_id": record.message_id,
            "outcome_kind": outcome.kind.value,
            "details": outcome.details,
        })
        return await self.handle_failed_message(record, event, outcome, deadline=settle_deadline)

    def decode(self, body: Optional[str]) -> DecodeResult:
        """Normalize and decode a raw message body."""
        normalized = normalize_message_body(body)
        if not normalized.ok:
            return DecodeResult.failure(normalized.error_kind, normalized.detail)
        return self.decoder.decode(normalized.text)

    async def handle_successful_message(
        self,
        record: SQSRecord,
        outcome: ProcessingOutcome,
        deadline: Optional[float] = None,
    ) -> MessageResult:
        """Delete the source message after successful processing."""
        result = MessageResult(
            message_id=record.message_id,
            outcome=outcome,
            disposition=MessageDisposition.ACKNOWLEDGED,
        )
        await self._delete_source_message(record, result, deadline)
        return result

    async def handle_failed_message(
        self,
        record: SQSRecord,
        event: Optional[EventBusMessage],
        outcome: ProcessingOutcome,
        deadline: Optional[float] = None,
    ) -> MessageResult:
        """
        Forward a failed message to the dead-letter queue, then delete it.

        If the dead-letter send is not acknowledged the source message is kept,
        so the queue's visibility timeout redelivers it later.
        """
        body = event.to_json() if event is not None else record.body
        result = MessageResult(
            message_id=record.message_id,
            outcome=outcome,
            disposition=MessageDisposition.RETAINED,
        )

        try:
            result.dead_letter_status = await self.sqs_client.send_message(self.dlq_url, body, deadline=deadline)
        except Exception:
            logger.exception("Failed to send message to DLQ", extra={"message_id": record.message_id})

        if result.dead_letter_status != HTTPStatus.OK:
            metrics.add_metric(name="DeadLetterSendFailures", unit=MetricUnit.Count, value=1)
            logger.error("Failed to send message to DLQ, leaving it for redelivery", extra={
                "message_id": record.message_id,
                "status_code": result.dead_letter_status,
                "dlq_url": self.dlq_url,
            })
            return result

        metrics.add_metric(name="MessagesDeadLettered", unit=MetricUnit.Count, value=1)
        result.disposition = MessageDisposition.DEAD_LETTERED
        await self._delete_source_message(record, result, deadline)
        return result

    async def _delete_source_message(self, record: SQSRecord, result: MessageResult,
                                     deadline: Optional[float]) -> None:
        # Best effort: a failed delete only means the message may be redelivered.
        try:
            result.delete_status = await self.sqs_client.delete_message(record, deadline=deadline)
        except Exception as e:
            result.delete_error = repr(e)
            logger.exception("Failed to delete SQS message", extra={"message_id": record.message_id})

        if result.delete_status != HTTPStatus.OK:
            metrics.add_metric(name="MessageDeleteFailures", unit=MetricUnit.Count, value=1)
            logger.error("Unexpected response deleting SQS message", extra={
                "message_id": record.message_id,
                "status_code": result.delete_status,
                "disposition": result.disposition.value,
            })

