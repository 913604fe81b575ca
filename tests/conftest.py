"""
Pytest configuration and shared fixtures for the client tracking event processor.

This module provides common test fixtures and configuration used across
unit, integration, and end-to-end tests.
"""

import json
import os
from typing import Any, Callable, Dict, Optional
from unittest.mock import AsyncMock

import boto3
import pytest
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from moto import mock_aws

from service.events import EventDecoder, EventDispatcher, EventProcessor, EventRegistry, ProcessorContext
from service.logic import register_client_tracking_events

TABLE_NAME = "test-client-tracking-table"
SOURCE_QUEUE_NAME = "client-tracking-events"
DLQ_NAME = "client-tracking-events-dlq"
ACCOUNT_ID = "123456789012"
REGION = "us-east-1"
SOURCE_QUEUE_ARN = f"arn:aws:sqs:{REGION}:{ACCOUNT_ID}:{SOURCE_QUEUE_NAME}"
DLQ_URL = f"https://sqs.{REGION}.amazonaws.com/{ACCOUNT_ID}/{DLQ_NAME}"
PARTITION_COUNT = 4


# Test environment configuration
@pytest.fixture(scope="session", autouse=True)
def test_environment():
    """Set up test environment variables."""
    os.environ.update({
        "AWS_DEFAULT_REGION": REGION,
        "AWS_REGION": REGION,
        "AWS_ACCESS_KEY_ID": "test",
        "AWS_SECRET_ACCESS_KEY": "test",
        "DYNAMODB_TABLE_NAME": TABLE_NAME,
        "CLIENT_TRACKING_PARTITION_COUNT": str(PARTITION_COUNT),
        "EVENTS_DLQ_URL": DLQ_URL,
        "DEADLINE_SAFETY_MARGIN_MS": "500",
        "POWERTOOLS_SERVICE_NAME": "test-client-tracking-events",
        "POWERTOOLS_METRICS_NAMESPACE": "TestClientTrackingEvents",
        "LOG_LEVEL": "DEBUG",
        "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    })


# Sample data fixtures
@pytest.fixture
def client_tracking_event_data() -> Dict[str, Any]:
    """A well-formed client tracking event as published on the bus."""
    return {
        "Subject": "ClientTracking",
        "Origin": "portal",
        "Scope": "zone",
        "DateTime": "2024-05-01T12:30:00Z",
        "GpnsEnabled": True,
        "SchemaName": "ClientTracking",
        "SchemaVersion": "1.2",
        "IpAddress": "10.0.0.15",
        "MacAddress": "AA:BB:CC:DD:EE:FF",
        "UserAgentRaw": "Mozilla/5.0",
        "ClientDeviceTypeId": "2",
        "PlatformTypeId": "5",
        "BrowserTypeId": "7",
        "MemberName": "Jane Smith",
        "MemberId": 42,
        "MemberNumber": "M-0042",
        "OrgNumber": "ORG-1001",
        "ZoneType": "Guest",
        "ChangeType": "Connect",
        "AuthMethod": "Voucher",
        "ZonePlanName": "Day Pass",
        "CurrencyCode": "USD",
        "Price": 9.99,
        "TimeZoneId": "America/Chicago",
    }


@pytest.fixture
def make_sqs_record() -> Callable[..., SQSRecord]:
    """Factory building SQS records the way Lambda delivers them."""
    counter = {"value": 0}

    def _make(body: Any, message_id: Optional[str] = None) -> SQSRecord:
        counter["value"] += 1
        if not isinstance(body, str):
            body = json.dumps(body)
        return SQSRecord({
            "messageId": message_id or f"msg-{counter['value']}",
            "receiptHandle": f"receipt-{counter['value']}",
            "body": body,
            "attributes": {"ApproximateReceiveCount": "1"},
            "messageAttributes": {},
            "md5OfBody": "",
            "eventSource": "aws:sqs",
            "eventSourceARN": SOURCE_QUEUE_ARN,
            "awsRegion": REGION,
        })

    return _make


@pytest.fixture
def sqs_event_payload() -> Callable[..., Dict[str, Any]]:
    """Factory building raw SQS Lambda events from message bodies."""

    def _make(*bodies: Any) -> Dict[str, Any]:
        records = []
        for index, body in enumerate(bodies, start=1):
            records.append({
                "messageId": f"msg-{index}",
                "receiptHandle": f"receipt-{index}",
                "body": body if isinstance(body, str) else json.dumps(body),
                "attributes": {"ApproximateReceiveCount": "1"},
                "messageAttributes": {},
                "md5OfBody": "",
                "eventSource": "aws:sqs",
                "eventSourceARN": SOURCE_QUEUE_ARN,
                "awsRegion": REGION,
            })
        return {"Records": records}

    return _make


@pytest.fixture
def lambda_context():
    """Create a Lambda context for testing."""

    class LambdaContext:
        function_name = "test-client-tracking-function"
        function_version = "1"
        invoked_function_arn = f"arn:aws:lambda:{REGION}:{ACCOUNT_ID}:function:test-client-tracking-function"
        memory_limit_in_mb = 512
        aws_request_id = "test-request-id-123"
        log_group_name = "/aws/lambda/test-client-tracking-function"
        log_stream_name = "2024/01/01/[$LATEST]test123"

        @staticmethod
        def get_remaining_time_in_millis() -> int:
            return 30000

    return LambdaContext()


# Pipeline fixtures with mocked collaborators
@pytest.fixture
def registry() -> EventRegistry:
    """Frozen registry with the client tracking event kind."""
    registry = EventRegistry()
    register_client_tracking_events(registry)
    return registry.freeze()


@pytest.fixture
def mock_store() -> AsyncMock:
    """Store client whose writes succeed."""
    store = AsyncMock()
    store.put_item.return_value = {"ResponseMetadata": {"HTTPStatusCode": 200}}
    return store


@pytest.fixture
def mock_queue() -> AsyncMock:
    """Queue client whose sends and deletes succeed."""
    queue = AsyncMock()
    queue.send_message.return_value = 200
    queue.delete_message.return_value = 200
    return queue


@pytest.fixture
def event_processor(registry, mock_store, mock_queue) -> EventProcessor:
    """Event processor wired to mocked collaborators."""
    context = ProcessorContext(dynamodb_client=mock_store, partition_count=PARTITION_COUNT)
    return EventProcessor(
        decoder=EventDecoder(registry),
        dispatcher=EventDispatcher(registry, context),
        sqs_client=mock_queue,
        dlq_url=DLQ_URL,
    )


# AWS fixtures
@pytest.fixture
def aws():
    """Mock all AWS services for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def dynamodb_table(aws):
    """Create a mock DynamoDB table for aggregate rows."""
    dynamodb = boto3.resource("dynamodb", region_name=REGION)

    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "EventName", "KeyType": "HASH"},
            {"AttributeName": "OrgNumber", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "EventName", "AttributeType": "S"},
            {"AttributeName": "OrgNumber", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )

    table.wait_until_exists()
    yield table


@pytest.fixture
def sqs_queues(aws) -> Dict[str, str]:
    """Create the mock source queue and dead-letter queue."""
    sqs = boto3.client("sqs", region_name=REGION)
    source_url = sqs.create_queue(QueueName=SOURCE_QUEUE_NAME)["QueueUrl"]
    dlq_url = sqs.create_queue(QueueName=DLQ_NAME)["QueueUrl"]
    return {"source": source_url, "dlq": dlq_url}


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "e2e" in str(item.fspath):
            item.add_marker(pytest.mark.e2e)
