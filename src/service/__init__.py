"""
Client Tracking Event Processor Service Module.

This package contains the queue-driven event pipeline, following the layered
architecture of the aws-lambda-handler-cookbook:

- handlers: configuration, observability and shared handler utilities
- events: envelope normalization, decoding, dispatch and settlement
- logic: per event kind processing strategies
- dal: DynamoDB and SQS access
- models: event and aggregate models
"""

__version__ = "1.0.0"
__description__ = "SQS event processor persisting client tracking aggregates to DynamoDB"

from service.handlers.utils.observability import logger, tracer, metrics

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
