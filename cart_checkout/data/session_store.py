# cart_checkout/data/session_store.py
import redis

from cart_checkout.utils.retry import redis_retry
from cart_checkout.utils.settings import REDIS_URL
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)


class SessionStore:
    """
    Transient key-value store with per-key TTL (Redis).
    Values are plain strings, callers serialize to JSON themselves.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def get(self, key: str) -> str | None:
        return self.redis.get(key)

    @redis_retry()
    def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.redis.set(name=key, value=value, ex=ex)

    @redis_retry()
    def set_if_absent(self, key: str, value: str, ex: int) -> bool:
        # SET key value NX EX ttl
        return bool(self.redis.set(name=key, value=value, nx=True, ex=ex))

    @redis_retry()
    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return self.redis.delete(*keys)

    @redis_retry()
    def expire(self, key: str, seconds: int) -> bool:
        return bool(self.redis.expire(key, seconds))

    @redis_retry()
    def eval(self, script: str, keys: list[str], args: list[str]):
        return self.redis.eval(script, len(keys), *keys, *args)

    def ping(self) -> bool:
        try:
            return bool(self.redis.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False
