"""
Deadline helpers tying asyncio timeouts to the Lambda execution budget.
"""

import asyncio
from typing import Any, Optional

# Budget kept back even from dead-letter and delete calls so the handler can still return
SETTLE_FLOOR_MS = 100


def remaining_time_ms(context: Any) -> Optional[int]:
    """Return the remaining execution time reported by the Lambda context, if any."""
    getter = getattr(context, 'get_remaining_time_in_millis', None)
    if getter is None:
        return None
    return int(getter())


def execution_deadline(remaining_ms: Optional[int], safety_margin_ms: int = 0) -> Optional[float]:
    """
    Convert a remaining execution budget into an absolute event loop deadline.

    Must be called from inside a running event loop. The returned value is
    suitable for ``asyncio.timeout_at``; ``None`` means no deadline.

    Args:
        remaining_ms: Milliseconds left before the platform stops the invocation
        safety_margin_ms: Milliseconds reserved for finishing the resilience path

    Returns:
        Loop time at which pending I/O should be abandoned, or None
    """
    if remaining_ms is None:
        return None
    budget_seconds = max(remaining_ms - safety_margin_ms, 0) / 1000
    return asyncio.get_running_loop().time() + budget_seconds
