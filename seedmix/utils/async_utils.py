"""
Timeout helper for external calls.

Timeouts are converted into the ordinary failure type of the call site so
that callers handle them exactly like any other provider or model failure.
"""

import asyncio
from typing import Awaitable, Optional, Type, TypeVar

from ..models.errors import ProviderError, SeedMixError

T = TypeVar("T")


async def call_with_timeout(
    awaitable: Awaitable[T],
    timeout: Optional[float],
    operation: str,
    error_cls: Type[SeedMixError] = ProviderError
) -> T:
    """
    Await an external call with a timeout.

    Args:
        awaitable: The pending provider or model call
        timeout: Seconds to wait; None disables the timeout
        operation: Operation name used in the error message
        error_cls: Failure type raised on timeout

    Returns:
        The call's result

    Raises:
        error_cls: If the call does not finish in time
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise error_cls(f"{operation} timed out after {timeout}s") from e
