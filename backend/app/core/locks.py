"""
Serialisierung von Clock-Aktionen pro Mitarbeiter.

Standard ist ein asyncio.Lock je Mitarbeiter (ein API-Prozess). Mit
USE_REDIS_LOCKS=true wird stattdessen ein Redis-Lock gehalten, damit sich
mehrere Worker-Prozesse abstimmen.
"""
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from redis.exceptions import LockError

from app.core.config import settings
from app.services.errors import ConcurrentModification

logger = logging.getLogger(__name__)

redis_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global redis_client
    if redis_client is None:
        redis_client = aioredis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return redis_client


async def close_redis():
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None


class EmployeeLockRegistry:
    """Ein asyncio.Lock pro Mitarbeiter, lazy angelegt."""

    def __init__(self):
        self._locks: dict[uuid.UUID, asyncio.Lock] = {}

    def get(self, employee_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(employee_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[employee_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, employee_id: uuid.UUID) -> AsyncIterator[None]:
        async with self.get(employee_id):
            yield


class RedisEmployeeLockRegistry:
    """Verteilter Lock, Schlüssel timeclock:employee:<id>."""

    def __init__(self, timeout: int | None = None):
        self.timeout = timeout or settings.LOCK_TIMEOUT_SECONDS

    @asynccontextmanager
    async def hold(self, employee_id: uuid.UUID) -> AsyncIterator[None]:
        client = await get_redis()
        lock = client.lock(
            f"timeclock:employee:{employee_id}",
            timeout=self.timeout,
            blocking_timeout=self.timeout,
        )
        try:
            acquired = await lock.acquire()
        except LockError as e:
            raise ConcurrentModification(
                "Another clock action for this employee is still running"
            ) from e
        if not acquired:
            raise ConcurrentModification(
                "Another clock action for this employee is still running"
            )
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # Lock ist während der Aktion abgelaufen
                logger.warning("Employee lock for %s expired before release", employee_id)


_local_registry = EmployeeLockRegistry()


def get_lock_registry() -> EmployeeLockRegistry | RedisEmployeeLockRegistry:
    if settings.USE_REDIS_LOCKS:
        return RedisEmployeeLockRegistry()
    return _local_registry
