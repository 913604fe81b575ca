"""
SQS access for source message deletion and dead-letter forwarding.

Callers only inspect the HTTP status code, so client errors and timeouts are
logged and reported as status codes instead of being raised.
"""

import asyncio
from http import HTTPStatus
from typing import Any, Callable, Dict, Optional

import boto3
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from service.dal import client_config
from service.handlers.utils.observability import logger, tracer


def queue_url_from_arn(event_source_arn: str, region: Optional[str] = None) -> str:
    """
    Build a queue URL from an SQS queue ARN.

    Args:
        event_source_arn: ARN such as ``arn:aws:sqs:us-east-1:123456789012:my-queue``
        region: Region to use instead of the one in the ARN

    Raises:
        ValueError: If the ARN does not carry an account id and queue name
    """
    parts = (event_source_arn or '').split(':')
    if len(parts) < 6 or not parts[4] or not parts[5]:
        raise ValueError(f"Could not determine account id and queue name from ARN '{event_source_arn}'")
    account_id = parts[4]
    queue_name = parts[-1]
    region = region or parts[3]
    return f"https://sqs.{region}.amazonaws.com/{account_id}/{queue_name}"


class SqsClientWrapper:
    """SQS client wrapper for deleting received messages and sending new ones."""

    def __init__(
        self,
        client: Optional[Any] = None,
        region_name: Optional[str] = None,
        config: Optional[Config] = None,
    ):
        session_config = {}
        if region_name:
            session_config['region_name'] = region_name
        self.client = client or boto3.client('sqs', config=config or client_config(), **session_config)

    @tracer.capture_method
    async def delete_message(self, record: SQSRecord, deadline: Optional[float] = None) -> int:
        """
        Delete a received message using its event source ARN and receipt handle.

        Raises:
            ValueError: If the queue URL cannot be derived from the record
        """
        queue_url = queue_url_from_arn(record.event_source_arn, record.aws_region)
        return await self._call(
            'DeleteMessage',
            self.client.delete_message,
            deadline,
            QueueUrl=queue_url,
            ReceiptHandle=record.receipt_handle,
        )

    @tracer.capture_method
    async def send_message(self, queue_url: str, body: str, deadline: Optional[float] = None) -> int:
        """Send a message body to the given queue URL."""
        return await self._call('SendMessage', self.client.send_message, deadline, QueueUrl=queue_url, MessageBody=body)

    async def _call(self, operation: str, func: Callable[..., Dict[str, Any]], deadline: Optional[float],
                    **kwargs: Any) -> int:
        try:
            async with asyncio.timeout_at(deadline):
                response = await asyncio.to_thread(func, **kwargs)
        except ClientError as e:
            status = e.response.get('ResponseMetadata', {}).get('HTTPStatusCode') or HTTPStatus.INTERNAL_SERVER_ERROR
            logger.error(f"SQS {operation} error", extra={
                "error_code": e.response.get('Error', {}).get('Code'),
                "error_message": e.response.get('Error', {}).get('Message'),
                "queue_url": kwargs.get('QueueUrl'),
                "status_code": int(status),
            })
            return int(status)
        except BotoCoreError as e:
            logger.error(f"SQS {operation} client error", extra={"error": str(e), "queue_url": kwargs.get('QueueUrl')})
            return int(HTTPStatus.SERVICE_UNAVAILABLE)
        except TimeoutError:
            logger.error(f"SQS {operation} timed out", extra={"queue_url": kwargs.get('QueueUrl')})
            return int(HTTPStatus.GATEWAY_TIMEOUT)

        return int(response.get('ResponseMetadata', {}).get('HTTPStatusCode', HTTPStatus.OK))
