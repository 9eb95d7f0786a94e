import hashlib

import redis

from app.utils.logging import get_logger
from app.utils.retry import redis_retry
from app.utils.settings import REDIS_SOCKET_TIMEOUT, REDIS_URL

logger = get_logger(__name__)


class TokenBlocklist:
    """
    Revoked access tokens, shared by every API instance through Redis.

    - one key per token: revoked:<sha256(token)>
    - TTL = remaining token lifetime, so entries disappear once the token
      would have expired anyway
    """

    prefix = "revoked:"

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
            socket_timeout=REDIS_SOCKET_TIMEOUT,
        )

    def _key(self, token: str) -> str:
        # raw tokens never land in redis
        return self.prefix + hashlib.sha256(token.encode("utf-8")).hexdigest()

    @redis_retry()
    def revoke(self, token: str, ttl: int) -> None:
        key = self._key(token)
        logger.info(f"Revoking token {key[len(self.prefix):len(self.prefix) + 12]} for {ttl}s")
        # SET revoked:<hash> 1 EX ttl
        self.redis.set(name=key, value="1", ex=max(int(ttl), 1))

    @redis_retry()
    def is_revoked(self, token: str) -> bool:
        return bool(self.redis.exists(self._key(token)))
