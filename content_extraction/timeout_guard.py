"""
Deadline wrapper for awaitables
"""

import asyncio
from typing import Awaitable, TypeVar

from .errors import TimedOut

T = TypeVar('T')


async def with_timeout(operation: Awaitable[T], timeout_s: float, label: str = "operation") -> T:
    """
    Await ``operation`` for at most ``timeout_s`` seconds.

    On expiry the underlying task is cancelled (so sockets are released) and
    ``TimedOut`` is raised; a late result is never seen by the caller.
    No retries happen here.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise TimedOut(label, timeout_s) from e
