"""Change feed over Redis pub/sub.

Events are published only after the owning database transaction has
committed, and are advisory: subscribers re-read state over the REST API.
A failed publish is logged and dropped.
"""

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.cm_common.datetime_utils import utc_now
from src.cm_common.redis_client import get_redis

logger = logging.getLogger(__name__)

RedisFactory = Callable[[], Awaitable[aioredis.Redis]]


def transaction_channel(transaction_id: str) -> str:
    return f"transactions:{transaction_id}"


def listing_offers_channel(card_id: str) -> str:
    return f"listings:{card_id}:offers"


def user_notifications_channel(user_id: str) -> str:
    return f"users:{user_id}:notifications"


class ChangeFeed:
    def __init__(self, redis_factory: RedisFactory = get_redis) -> None:
        self._redis_factory = redis_factory

    async def publish(self, channel: str, event: str, payload: dict[str, Any]) -> int:
        """Publish one event. Returns the receiver count, 0 on failure."""
        message = json.dumps(
            {"event": event, "data": payload, "ts": utc_now().isoformat()},
            default=str,
        )
        try:
            redis = await self._redis_factory()
            return await redis.publish(channel, message)
        except RedisError:
            logger.warning("Realtime publish to %s failed (event=%s)", channel, event, exc_info=True)
            return 0

    async def subscribe(self, channel: str) -> AsyncIterator[dict[str, Any]]:
        redis = await self._redis_factory()
        pubsub = redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    yield json.loads(message["data"])
                except (TypeError, ValueError):
                    logger.warning("Dropping malformed message on %s", channel)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
