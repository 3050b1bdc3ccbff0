"""
Time limits for third-party calls
"""
import asyncio
from typing import Awaitable, TypeVar

from pricemyfloor.utils.exceptions import ExternalServiceTimeout

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: float, service: str) -> T:
    """
    Await a provider call, failing with ExternalServiceTimeout after `seconds`.

    Args:
        awaitable: The provider coroutine
        seconds: Time budget
        service: Provider name used in the error message
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise ExternalServiceTimeout(service, seconds)
