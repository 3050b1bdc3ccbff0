"""
Per-key FIFO serialisation of async tasks
"""
import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple

from pricemyfloor.utils.logging import get_logger

logger = get_logger(__name__)


class KeyedTaskQueue:
    """
    Runs tasks one at a time per key, in arrival order.
    Tasks with different keys run independently.

    Locks are created on demand and dropped once no task holds or awaits
    them, so idle keys cost nothing.
    """

    def __init__(self, name: str = "queue"):
        self.name = name
        self._locks: Dict[Hashable, Tuple[asyncio.Lock, int]] = {}

    def _acquire_slot(self, key: Hashable) -> asyncio.Lock:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        self._locks[key] = (lock, users + 1)
        return lock

    def _release_slot(self, key: Hashable) -> None:
        lock, users = self._locks[key]
        if users <= 1:
            del self._locks[key]
        else:
            self._locks[key] = (lock, users - 1)

    def pending(self, key: Hashable) -> int:
        """Number of tasks running or waiting for key"""
        return self._locks.get(key, (None, 0))[1]

    async def run(self, key: Hashable, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """
        Run func(*args, **kwargs) once every earlier task for key has finished.

        Exceptions propagate to the caller and do not block later tasks.
        """
        lock = self._acquire_slot(key)
        try:
            if lock.locked():
                logger.debug(f"[dim]{self.name}: queued task for[/dim] [cyan]{key}[/cyan]")
            async with lock:
                return await func(*args, **kwargs)
        finally:
            self._release_slot(key)
