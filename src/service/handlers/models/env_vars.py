"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables read by
the event processor at cold start. A missing or invalid value is fatal.
"""

from typing import Annotated

from aws_lambda_env_modeler import BaseModel as BaseEnvModel, get_environment_variables
from pydantic import Field


class EventProcessorEnvVars(BaseEnvModel):
    """Environment variables for the client tracking event processor."""

    # DynamoDB table receiving aggregate rows
    DYNAMODB_TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table name for aggregate event rows',
        min_length=1
    )]

    # Number of export partition shards rows are spread across
    CLIENT_TRACKING_PARTITION_COUNT: Annotated[int, Field(
        description='Number of ExportPartition shards for client tracking rows',
        gt=0
    )]

    # Dead-letter queue for messages that could not be processed
    EVENTS_DLQ_URL: Annotated[str, Field(
        description='SQS queue URL receiving failed events',
        min_length=1
    )]

    # AWS region
    AWS_REGION: Annotated[str, Field(
        default='us-east-1',
        description='AWS region for service deployment'
    )] = 'us-east-1'

    # Time reserved at the end of an invocation for dead-letter and delete calls
    DEADLINE_SAFETY_MARGIN_MS: Annotated[int, Field(
        default=500,
        description='Milliseconds subtracted from the remaining Lambda time when deriving I/O deadlines',
        ge=0
    )] = 500

    # botocore limits, kept below the function timeout so abandoned calls end before the invocation
    AWS_CONNECT_TIMEOUT_SECONDS: Annotated[float, Field(
        default=2,
        description='Connect timeout for DynamoDB and SQS clients',
        gt=0
    )] = 2

    AWS_READ_TIMEOUT_SECONDS: Annotated[float, Field(
        default=5,
        description='Read timeout for DynamoDB and SQS clients',
        gt=0
    )] = 5

    AWS_MAX_ATTEMPTS: Annotated[int, Field(
        default=2,
        description='Total attempts per DynamoDB or SQS call, retries included',
        ge=1
    )] = 2

    # Service name for observability
    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        default='client-tracking-events',
        description='Service name for AWS Powertools'
    )] = 'client-tracking-events'

    # Log level for AWS Powertools Logger
    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    # Enable/disable X-Ray tracing
    POWERTOOLS_TRACE_DISABLED: Annotated[str, Field(
        default='false',
        description='Disable X-Ray tracing (true/false)',
        pattern=r'^(true|false)$'
    )] = 'false'


def get_handler_env_vars() -> EventProcessorEnvVars:
    """
    Get typed environment variables for the event processor.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=EventProcessorEnvVars)
