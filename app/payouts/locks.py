"""
Per-order serialization for payment distribution.

A distribution for an order must never run twice at the same time: the
second run would not see the first one's PayoutRecords and would credit the
same recipients again. DistributedLock provides mutual exclusion across web
and worker processes through Redis.

Usage:
    from payouts.locks import order_lock

    with order_lock(order_id) as lock:
        distribute(...)
        lock.extend()  # before another slow gateway call
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING

from django.conf import settings
from django_redis import get_redis_connection

from payouts.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis


class DistributedLock:
    """
    Redis lock with TTL and token ownership.

    SET NX EX acquires; a Lua script releases or extends only if the stored
    token is ours, so an expired holder cannot free someone else's lock.

    Args:
        key: Lock identifier (prefixed with "lock:")
        ttl: Seconds before Redis expires the lock on its own
        blocking: Wait for the lock instead of failing immediately
        timeout: Maximum wait in seconds when blocking

    Raises:
        LockAcquisitionError: From acquire() / __enter__ when not acquired
    """

    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    EXTEND_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("expire", KEYS[1], ARGV[2])
    else
        return 0
    end
    """

    POLL_INTERVAL = 0.05

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def acquire(self) -> bool:
        self._token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if not self.blocking:
            if self._try_acquire(redis):
                return True
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )

        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if self._try_acquire(redis):
                return True
            time.sleep(self.POLL_INTERVAL)

        self._token = None
        raise LockAcquisitionError(
            f"Failed to acquire lock '{self.key}' within {self.timeout}s",
            details={"key": self.key, "timeout": self.timeout},
        )

    def release(self) -> bool:
        """Release if held by us. Safe to call more than once."""
        if self._token is None:
            return False

        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    def extend(self, ttl: int | None = None) -> bool:
        """Reset the TTL (not add to it). Returns False if we no longer hold it."""
        if self._token is None:
            return False

        result = self._get_redis().eval(
            self.EXTEND_SCRIPT, 1, self.key, self._token, ttl or self.ttl
        )
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        self.release()
        return False


def order_lock(order_id: str) -> DistributedLock:
    """Lock guarding every distribution step for ``order_id``."""
    return DistributedLock(
        f"distribution:order:{order_id}",
        ttl=settings.DISTRIBUTION_LOCK_TTL_SECONDS,
        blocking=True,
        timeout=settings.DISTRIBUTION_LOCK_TIMEOUT_SECONDS,
    )


__all__ = [
    "DistributedLock",
    "order_lock",
]
