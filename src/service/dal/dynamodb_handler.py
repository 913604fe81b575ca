"""
DynamoDB access for aggregate rows.

Blocking boto3 calls run in a worker thread so that each call can be bounded
by the invocation deadline. Client failures and deadline expiry are raised
as ``DALError``.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from service.dal import client_config
from service.handlers.utils.errors import DALError, ErrorCategory, ErrorSeverity
from service.handlers.utils.observability import logger, metrics, tracer


class DynamoDbClientWrapper:
    """DynamoDB table access with deadline support and consistent error mapping."""

    def __init__(
        self,
        table_name: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        resource: Optional[Any] = None,
        config: Optional[Config] = None,
    ):
        """
        Initialize the DynamoDB wrapper.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for local testing)
            resource: Pre-built boto3 DynamoDB resource to reuse
            config: botocore timeouts and retries; defaults to ``client_config()``
        """
        self.table_name = table_name

        session_config = {}
        if region_name:
            session_config['region_name'] = region_name
        if endpoint_url:
            session_config['endpoint_url'] = endpoint_url

        self.dynamodb = resource or boto3.resource('dynamodb', config=config or client_config(), **session_config)
        self.table = self.dynamodb.Table(table_name)

        logger.debug("DynamoDB wrapper initialized", extra={
            "table_name": table_name,
            "region_name": region_name,
            "endpoint_url": endpoint_url,
        })

    @tracer.capture_method
    async def put_item(self, item: Dict[str, Any], deadline: Optional[float] = None) -> Dict[str, Any]:
        """
        Put an item into the table.

        Args:
            item: Item attributes in native Python types
            deadline: Event loop time after which the call is abandoned

        Returns:
            Raw PutItem response

        Raises:
            DALError: If DynamoDB rejects the write or the deadline passes first
        """
        return await self._call('PutItem', self.table.put_item, deadline, Item=item)

    @tracer.capture_method
    async def get_item(self, key: Dict[str, Any], deadline: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Get an item by its full primary key, or None when absent."""
        response = await self._call('GetItem', self.table.get_item, deadline, Key=key)
        return response.get('Item')

    async def _call(self, operation: str, func: Callable[..., Dict[str, Any]], deadline: Optional[float],
                    **kwargs: Any) -> Dict[str, Any]:
        operation_start = time.time()
        try:
            async with asyncio.timeout_at(deadline):
                response = await asyncio.to_thread(func, **kwargs)
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']

            metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
            logger.error(f"DynamoDB {operation} error", extra={
                "error_code": error_code,
                "error_message": error_message,
                "table_name": self.table_name,
            })

            if error_code == 'ResourceNotFoundException':
                raise DALError(
                    message=f"Table {self.table_name} not found",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="TABLE_NOT_FOUND",
                    severity=ErrorSeverity.CRITICAL,
                ) from e
            if error_code in ('ProvisionedThroughputExceededException', 'ThrottlingException'):
                raise DALError(
                    message="DynamoDB throttling detected",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="THROTTLING_ERROR",
                ) from e
            raise DALError(
                message=f"DynamoDB error: {error_message}",
                operation=operation,
                table_name=self.table_name,
            ) from e
        except BotoCoreError as e:
            metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
            logger.error(f"DynamoDB {operation} client error", extra={"error": str(e), "table_name": self.table_name})
            raise DALError(
                message=f"DynamoDB client error: {e}",
                operation=operation,
                table_name=self.table_name,
                error_code="CLIENT_ERROR",
            ) from e
        except TimeoutError as e:
            metrics.add_metric(name=f"DynamoDB{operation}Timeout", unit=MetricUnit.Count, value=1)
            logger.error(f"DynamoDB {operation} timed out", extra={"table_name": self.table_name})
            raise DALError(
                message=f"DynamoDB {operation} did not finish before the invocation deadline",
                operation=operation,
                table_name=self.table_name,
                error_code="DEADLINE_EXCEEDED",
                category=ErrorCategory.TIMEOUT,
            ) from e

        operation_duration = (time.time() - operation_start) * 1000
        metrics.add_metric(name=f"DynamoDB{operation}Duration", unit=MetricUnit.Milliseconds, value=operation_duration)
        tracer.put_annotation("table_name", self.table_name)
        return response
