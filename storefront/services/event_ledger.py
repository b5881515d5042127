# storefront/services/event_ledger.py
import redis
from redis.exceptions import RedisError

from storefront.utils.logging import get_logger
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, WEBHOOK_EVENT_TTL_SECONDS

logger = get_logger(__name__)


class EventLedger:
    """
    Remembers processed webhook event ids in redis.

    - seen: has this event id been handled already
    - remember: SET NX EX, expires on its own after the TTL
    Redis being unavailable never blocks webhook processing.
    """

    def __init__(self, url: str | None = None, ttl: int = WEBHOOK_EVENT_TTL_SECONDS, client=None):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _key(event_id: str) -> str:
        return f"webhook:event:{event_id}"

    @redis_retry()
    def _exists(self, key: str) -> bool:
        return bool(self.redis.exists(key))

    @redis_retry()
    def _set(self, key: str) -> bool:
        # SET webhook:event:evt_1 "1" NX EX 259200
        return bool(self.redis.set(name=key, value="1", nx=True, ex=self.ttl))

    def seen(self, event_id: str) -> bool:
        try:
            return self._exists(self._key(event_id))
        except RedisError as e:
            logger.warning(f"Event ledger unavailable, processing {event_id} anyway: {e}")
            return False

    def remember(self, event_id: str) -> bool:
        try:
            return self._set(self._key(event_id))
        except RedisError as e:
            logger.warning(f"Event ledger unavailable, {event_id} not recorded: {e}")
            return False
