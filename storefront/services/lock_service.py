import uuid

import redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, CART_SYNC_LOCK_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one Lua call so a lock is only released by its holder
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class CartSyncLock:
    """
    Guards the anonymous-to-account cart migration so two sign-ins for the
    same account don't migrate the same device cart twice.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def key(user_id: int) -> str:
        return f"cart-sync:{user_id}"

    @redis_retry()
    def acquire(self, user_id: int, ttl: int = CART_SYNC_LOCK_TTL_SECONDS) -> str | None:
        token = uuid.uuid4().hex
        logger.info(f"Acquire cart sync lock for user {user_id}")
        #SET cart-sync:42 <token> NX EX 30
        if self.redis.set(name=self.key(user_id), value=token, nx=True, ex=ttl):
            return token
        return None

    @redis_retry()
    def release(self, user_id: int, token: str) -> bool:
        logger.info(f"Release cart sync lock for user {user_id}")
        return bool(self.redis.eval(_RELEASE_LUA, 1, self.key(user_id), token))
