# storefront/services/lock_service.py
import redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare and delete, atomic
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis runs the script as one uninterruptible step,
#nobody can get between GET and DEL so a lock is only released by its owner


class LockService:
    """
    -short lived per-user lock around try-on submission (check active job + insert)
    -release only by the owner token
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(user_id: int) -> str:
        return f"tryon:user:{user_id}:lock"

    @redis_retry()
    def acquire_tryon_lock(self, user_id: int, token: str, ttl: int) -> bool:
        key = self._key(user_id)
        logger.info(f"Acquire lock {key} ({token})")
        #SET tryon:user:1:lock "<token>" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True, #only when the key does not exist yet
                ex=ttl, #expires by itself if the holder dies
            )
        )

    @redis_retry()
    def release_tryon_lock(self, user_id: int, token: str) -> bool:
        key = self._key(user_id)
        logger.info(f"Release lock {key} ({token})")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
