"""
Data Access Layer for the event processor.

This module defines the interfaces of the two external collaborators the
pipeline talks to: the aggregate store and the message queue. Both are
awaited with an optional event loop deadline.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from botocore.config import Config

DEFAULT_CONNECT_TIMEOUT_SECONDS = 2
DEFAULT_READ_TIMEOUT_SECONDS = 5
DEFAULT_MAX_ATTEMPTS = 2


def client_config(
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    read_timeout: float = DEFAULT_READ_TIMEOUT_SECONDS,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Config:
    """
    Build the botocore configuration shared by the store and queue clients.

    A call abandoned at its deadline keeps running in its worker thread, and
    the invocation cannot return until that thread finishes. These limits keep
    every abandoned call shorter than the invocation budget.
    """
    return Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )


@runtime_checkable
class StoreClient(Protocol):
    """Protocol defining the aggregate store interface."""

    async def put_item(self, item: Dict[str, Any], deadline: Optional[float] = None) -> Dict[str, Any]:
        """Write an item, replacing any item with the same key."""
        ...

    async def get_item(self, key: Dict[str, Any], deadline: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Read an item by key."""
        ...


@runtime_checkable
class QueueClient(Protocol):
    """Protocol defining the message queue interface.

    Only the HTTP status code of each call is reported back.
    """

    async def delete_message(self, record: SQSRecord, deadline: Optional[float] = None) -> int:
        """Delete a received message."""
        ...

    async def send_message(self, queue_url: str, body: str, deadline: Optional[float] = None) -> int:
        """Send a message body to a queue."""
        ...


__all__ = [
    'client_config',
    'StoreClient',
    'QueueClient',
]
