from contextlib import contextmanager

import redis
from ulid import ULID

from storefront.domain.errors import ConcurrencyConflict
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare and delete in one step, lua runs atomically on the server
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived per-order lock for payment reconciliation.
    The value is a random token so only the holder can release it.
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(order_id: int) -> str:
        return f"order:{order_id}:payment"

    @redis_retry()
    def acquire_order_lock(self, order_id: int, token: str, ttl: int) -> bool:
        key = self._key(order_id)
        logger.info(f"Acquire lock {key}")
        #SET order:1:payment <token> NX EX 30
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_order_lock(self, order_id: int, token: str) -> bool:
        key = self._key(order_id)
        logger.info(f"Release lock {key}")
        return bool(self.redis.eval(_RELEASE_LUA, 1, key, token))


@contextmanager
def order_payment_lock(lock_service, order_id: int, ttl: int):
    token = str(ULID())
    if not lock_service.acquire_order_lock(order_id, token, ttl):
        raise ConcurrencyConflict("Payment for this order is already being processed")
    try:
        yield token
    finally:
        lock_service.release_order_lock(order_id, token)
