"""
Client Tracking Event Processor Lambda Function.

This Lambda function consumes SQS batches of client tracking events (direct or
SNS-wrapped), persists an export-ready aggregate per event to DynamoDB, and
forwards anything it cannot process to the events dead-letter queue.
"""

import asyncio
from functools import lru_cache
from typing import Any, Dict

from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import SQSEvent
from aws_lambda_powertools.utilities.typing import LambdaContext

from service.dal import client_config
from service.dal.dynamodb_handler import DynamoDbClientWrapper
from service.dal.sqs_handler import SqsClientWrapper
from service.events import (
    EventDecoder,
    EventDispatcher,
    EventProcessor,
    EventRegistry,
    ProcessorContext,
)
from service.handlers.models.env_vars import get_handler_env_vars
from service.handlers.utils.execution_budget import remaining_time_ms
from service.handlers.utils.observability import logger, metrics, tracer
from service.logic import register_client_tracking_events


def build_registry() -> EventRegistry:
    """Register every event kind this function handles."""
    registry = EventRegistry()
    register_client_tracking_events(registry)
    return registry.freeze()


@lru_cache(maxsize=1)
def get_event_processor() -> EventProcessor:
    """
    Build the pipeline once per execution environment.

    Raises:
        ValueError: If required environment variables are missing or invalid
        CapabilityNotRegisteredError: If a registered strategy lacks a collaborator
    """
    env_vars = get_handler_env_vars()
    registry = build_registry()
    config = client_config(
        connect_timeout=env_vars.AWS_CONNECT_TIMEOUT_SECONDS,
        read_timeout=env_vars.AWS_READ_TIMEOUT_SECONDS,
        max_attempts=env_vars.AWS_MAX_ATTEMPTS,
    )

    context = ProcessorContext(
        dynamodb_client=DynamoDbClientWrapper(
            env_vars.DYNAMODB_TABLE_NAME,
            region_name=env_vars.AWS_REGION,
            config=config,
        ),
        partition_count=env_vars.CLIENT_TRACKING_PARTITION_COUNT,
    )
    dispatcher = EventDispatcher(registry, context)
    dispatcher.verify()

    logger.info("Event processor initialized", extra={
        "subjects": registry.subjects(),
        "table_name": env_vars.DYNAMODB_TABLE_NAME,
        "partition_count": env_vars.CLIENT_TRACKING_PARTITION_COUNT,
    })

    return EventProcessor(
        decoder=EventDecoder(registry),
        dispatcher=dispatcher,
        sqs_client=SqsClientWrapper(region_name=env_vars.AWS_REGION, config=config),
        dlq_url=env_vars.EVENTS_DLQ_URL,
    )


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Process one SQS batch.

    Args:
        event: SQS event payload
        context: Lambda context object

    Returns:
        SQS partial batch response naming the messages left for redelivery
    """
    sqs_event = SQSEvent(event)
    records = list(sqs_event.records)

    logger.debug("Client tracking processor invoked", extra={
        "record_count": len(records),
        "function_arn": context.invoked_function_arn,
    })
    if not records:
        logger.warning("No records to process in SQS event")
        return {"batchItemFailures": []}

    processor = get_event_processor()
    env_vars = get_handler_env_vars()

    batch = asyncio.run(
        processor.process_batch(
            records,
            remaining_time_ms=remaining_time_ms(context),
            safety_margin_ms=env_vars.DEADLINE_SAFETY_MARGIN_MS,
        )
    )

    metrics.add_metric(name="BatchesProcessed", unit=MetricUnit.Count, value=1)
    return batch.batch_item_failures()
