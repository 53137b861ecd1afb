"""Per-code serialization of lifecycle operations.

Calls for different reservation/booking codes never contend; calls for the
same code run one at a time so that a duplicate confirm observes the first
one's result.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class CodeLocks:
    """Process-wide registry of asyncio locks keyed by confirmation code."""

    _locks: Dict[str, asyncio.Lock] = {}
    _waiters: Dict[str, int] = {}

    @classmethod
    @asynccontextmanager
    async def hold(cls, code: str) -> AsyncIterator[None]:
        lock = cls._locks.setdefault(code, asyncio.Lock())
        cls._waiters[code] = cls._waiters.get(code, 0) + 1
        try:
            async with lock:
                yield
        finally:
            cls._waiters[code] -= 1
            if cls._waiters[code] == 0:
                # last user of this code; drop the lock
                del cls._waiters[code]
                cls._locks.pop(code, None)

    @classmethod
    def active_codes(cls) -> list[str]:
        return list(cls._locks)
