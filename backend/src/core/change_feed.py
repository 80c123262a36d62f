"""
Change notifications for bookmark rows.

Events are published on a per-owner Redis channel so that every open view of that
owner (in any app instance) can refetch. When Redis is unavailable the feed degrades
to in-process delivery, which still covers views served by this instance.
"""
import asyncio
import contextlib
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from pydantic import ValidationError
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from core.redis import RedisClient
from schemas.change import ChangeEvent

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


async def _invoke(callback: ChangeCallback, event: ChangeEvent) -> None:
    """Run a subscriber callback; a failing subscriber must not stop delivery."""
    try:
        result = callback(event)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("Change subscriber failed for %s event", event.kind)


class Subscription:
    """Handle for an active change subscription. Closing is idempotent."""

    def __init__(self, channel: str, on_close: Callable[[], Awaitable[None]]) -> None:
        self.channel = channel
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once `close()` has been called."""
        return self._closed

    async def close(self) -> None:
        """Stop receiving events."""
        if self._closed:
            return
        self._closed = True
        await self._on_close()


class ChangeFeed:
    """Publishes and delivers `ChangeEvent`s, scoped by owner."""

    def __init__(self, redis_client: RedisClient | None = None) -> None:
        self._redis = redis_client
        self._local: dict[str, list[ChangeCallback]] = defaultdict(list)

    @staticmethod
    def channel_name(owner_id: str) -> str:
        """Redis channel carrying one owner's events."""
        return f"bookmarks:changes:{owner_id}"

    @property
    def uses_redis(self) -> bool:
        """True when events travel through Redis rather than in-process."""
        return self._redis is not None and self._redis.is_connected

    async def publish(self, event: ChangeEvent) -> None:
        """Publish an event to every subscriber of its owner."""
        channel = self.channel_name(event.owner_id)
        if self.uses_redis and await self._redis.publish(channel, event.model_dump_json()):
            return
        for callback in list(self._local.get(channel, [])):
            await _invoke(callback, event)

    async def subscribe(self, owner_id: str, callback: ChangeCallback) -> Subscription:
        """
        Subscribe to one owner's changes.

        The returned handle must be closed when the subscriber goes away.
        """
        channel = self.channel_name(owner_id)
        if self.uses_redis:
            pubsub = self._redis.pubsub()
            if pubsub is not None:
                try:
                    await pubsub.subscribe(channel)
                except RedisError as e:
                    logger.warning("Redis SUBSCRIBE failed, using in-process delivery: %s", e)
                    await pubsub.aclose()
                else:
                    return self._redis_subscription(channel, pubsub, callback)

        self._local[channel].append(callback)

        async def _remove() -> None:
            callbacks = self._local.get(channel, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self._local.pop(channel, None)

        return Subscription(channel, _remove)

    def _redis_subscription(
        self, channel: str, pubsub: PubSub, callback: ChangeCallback,
    ) -> Subscription:
        listener = asyncio.create_task(self._listen(pubsub, callback))

        async def _close() -> None:
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener
            try:
                await pubsub.unsubscribe(channel)
            except RedisError as e:
                logger.warning("Redis UNSUBSCRIBE failed: %s", e)
            finally:
                await pubsub.aclose()

        return Subscription(channel, _close)

    async def _listen(self, pubsub: PubSub, callback: ChangeCallback) -> None:
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event = ChangeEvent.model_validate_json(message["data"])
                except ValidationError:
                    logger.warning("Ignoring malformed change event: %r", message["data"])
                    continue
                await _invoke(callback, event)
        except RedisError as e:
            logger.warning("Redis subscription lost: %s", e)

    @property
    def local_subscriber_count(self) -> int:
        """Number of in-process subscribers across all owners."""
        return sum(len(callbacks) for callbacks in self._local.values())
