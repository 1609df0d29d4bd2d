import redis
from commerce.utils.retry import redis_retry
from commerce.utils.settings import REDIS_URL
from commerce.utils.logging import get_logger

logger = get_logger(__name__)

#LUA porownaj i usun, atomicity
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis wykonuje skrypt lua atomowo, nikt nie wcisnie sie miedzy GET a DEL
#wiec lock zwolni tylko ten kto go zalozyl


class LockService:
    """
    -lock na checkout sesji (jeden placeOrder naraz dla koszyka)
    -zwalnianie locka tylko przez wlasciciela
    -atomowosc przy pomocy lua
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def checkout_key(session_id: str) -> str:
        return f"checkout:{session_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, session_id: str, owner: str, ttl: int) -> bool:
        key = self.checkout_key(session_id)
        logger.info(f"Acquire lock {key} owner {owner}")
        #SET checkout:abc:lock "owner" NX EX 30
        return bool(
            self.redis.set(
                name=key,
                value=owner,
                nx=True,  #tylko jesli klucz nie istnieje
                ex=ttl,  #wygasa sam, nawet jak proces padnie w trakcie checkoutu
            )
        )

    @redis_retry()
    def release_checkout_lock(self, session_id: str, owner: str) -> bool:
        key = self.checkout_key(session_id)
        logger.info(f"Release lock {key} owner {owner}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, owner)
        return bool(res)
