"""
Tests for the per-order distribution lock.
"""

import pytest

from payouts.exceptions import LockAcquisitionError
from payouts.locks import DistributedLock, order_lock


@pytest.fixture
def redis(mock_redis_lock):
    return mock_redis_lock


class TestDistributedLock:
    def test_acquire_sets_key_with_nx_and_ttl(self, redis):
        """Should SET NX EX the prefixed key with a random token."""
        lock = DistributedLock("distribution:order:ORD-1", ttl=60, blocking=False)

        assert lock.acquire() is True

        args, kwargs = redis.set.call_args
        assert args[0] == "lock:distribution:order:ORD-1"
        assert args[1] == lock._token
        assert kwargs == {"nx": True, "ex": 60}
        assert lock.is_held

    def test_non_blocking_raises_when_held(self, redis):
        """Should fail immediately and forget the token."""
        redis.set.return_value = False
        lock = DistributedLock("k", blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert exc_info.value.details["key"] == "lock:k"
        assert lock.is_held is False

    def test_blocking_retries_until_free(self, redis, mocker):
        mocker.patch("payouts.locks.time.sleep")
        redis.set.side_effect = [False, False, True]

        lock = DistributedLock("k", blocking=True, timeout=5.0)

        assert lock.acquire() is True
        assert redis.set.call_count == 3

    def test_blocking_times_out(self, redis, mocker):
        """Should raise LockAcquisitionError once the deadline passes."""
        mock_time = mocker.patch("payouts.locks.time")
        mock_time.monotonic.side_effect = [0.0, 0.5, 2.0]
        redis.set.return_value = False

        lock = DistributedLock("k", blocking=True, timeout=1.0)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert exc_info.value.details["timeout"] == 1.0
        assert lock.is_held is False

    def test_release_runs_owner_check_script(self, redis):
        lock = DistributedLock("k", blocking=False)
        lock.acquire()
        token = lock._token

        assert lock.release() is True

        args = redis.eval.call_args[0]
        assert args[0] == DistributedLock.RELEASE_SCRIPT
        assert args[2:] == ("lock:k", token)
        assert lock.is_held is False

    def test_release_twice_is_safe(self, redis):
        lock = DistributedLock("k", blocking=False)
        lock.acquire()
        lock.release()

        assert lock.release() is False
        assert redis.eval.call_count == 1

    def test_extend_resets_ttl(self, redis):
        lock = DistributedLock("k", ttl=60, blocking=False)
        lock.acquire()

        assert lock.extend() is True
        assert redis.eval.call_args[0][4] == 60

        lock.extend(ttl=120)
        assert redis.eval.call_args[0][4] == 120

    def test_extend_after_expiry_returns_false(self, redis):
        """Should report loss of ownership."""
        redis.eval.return_value = 0
        lock = DistributedLock("k", blocking=False)
        lock.acquire()

        assert lock.extend() is False

    def test_context_manager_releases_on_error(self, redis):
        with pytest.raises(RuntimeError):
            with DistributedLock("k", blocking=False):
                raise RuntimeError("boom")

        redis.eval.assert_called_once()


class TestOrderLock:
    def test_uses_settings(self, redis, settings):
        settings.DISTRIBUTION_LOCK_TTL_SECONDS = 45
        settings.DISTRIBUTION_LOCK_TIMEOUT_SECONDS = 3.0

        lock = order_lock("ORD-42")

        assert lock.key == "lock:distribution:order:ORD-42"
        assert lock.ttl == 45
        assert lock.timeout == 3.0
        assert lock.blocking is True
