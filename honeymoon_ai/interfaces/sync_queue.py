# interfaces/sync_queue.py
"""
Offline Sync Queue for writes that could not reach the backing store.
Items are replayed once connectivity returns, up to a bounded retry count,
after which they are dropped and logged.
"""

from typing import Awaitable, Callable, Dict, List, Optional

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError

from ..config import settings
from ..schemas.ai_schemas import SyncQueueItem

SyncHandler = Callable[[SyncQueueItem], Awaitable[None]]


class SyncQueue:
    """
    Durable FIFO of pending writes.

    Redis list when available, in-memory list otherwise.
    """

    QUEUE_KEY = "honeymoon:sync_queue"

    def __init__(
        self,
        redis_url: Optional[str] = None,
        max_retries: Optional[int] = None
    ):
        """
        Args:
            redis_url: Redis connection URL ("" forces in-memory storage)
            max_retries: Attempts before an item is dropped
        """
        if redis_url is None:
            redis_url = settings.redis_url if settings.REDIS_ENABLED else ""
        self.redis_url = redis_url
        self.max_retries = max_retries or settings.SYNC_MAX_RETRIES
        self.redis_client: Optional[redis.Redis] = None
        self._memory_queue: List[SyncQueueItem] = []
        self._processing = False
        self._initialized = False

    async def _ensure_connected(self):
        """Ensure Redis connection is established"""
        if self._initialized:
            return

        if not self.redis_url:
            logger.info("SyncQueue using in-memory storage")
            self._initialized = True
            return

        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await self.redis_client.ping()
            logger.info("SyncQueue connected to Redis")
        except Exception as e:
            logger.warning(f"Redis connection failed, using in-memory sync queue: {e}")
            self.redis_client = None
        self._initialized = True

    @property
    def is_processing(self) -> bool:
        return self._processing

    async def enqueue(self, item: SyncQueueItem) -> str:
        """Add a pending write to the end of the queue"""
        await self._ensure_connected()

        if self.redis_client:
            try:
                await self.redis_client.rpush(self.QUEUE_KEY, item.model_dump_json())
                logger.info(f"Queued {item.type.value}/{item.action.value} for sync: {item.id}")
                return item.id
            except Exception as e:
                logger.error(f"Redis enqueue error, keeping item in memory: {e}")

        self._memory_queue.append(item)
        logger.info(f"Queued {item.type.value}/{item.action.value} for sync: {item.id}")
        return item.id

    async def pending(self) -> List[SyncQueueItem]:
        """Snapshot of queued items, oldest first"""
        await self._ensure_connected()

        items = list(self._memory_queue)
        if self.redis_client:
            try:
                for raw in await self.redis_client.lrange(self.QUEUE_KEY, 0, -1):
                    try:
                        items.append(SyncQueueItem.model_validate_json(raw))
                    except ValidationError as e:
                        logger.warning(f"Dropping unreadable sync item: {e}")
            except Exception as e:
                logger.error(f"Redis read error on sync queue: {e}")
        return sorted(items, key=lambda i: i.timestamp)

    async def clear(self):
        await self._ensure_connected()

        self._memory_queue = []
        if self.redis_client:
            try:
                await self.redis_client.delete(self.QUEUE_KEY)
            except Exception as e:
                logger.error(f"Redis clear error on sync queue: {e}")

    async def _replace(self, items: List[SyncQueueItem]):
        await self.clear()
        if self.redis_client:
            try:
                if items:
                    await self.redis_client.rpush(self.QUEUE_KEY, *[i.model_dump_json() for i in items])
                return
            except Exception as e:
                logger.error(f"Redis write error on sync queue, keeping items in memory: {e}")
        self._memory_queue = list(items)

    async def process(self, handler: SyncHandler) -> Dict[str, int]:
        """
        Replay queued items through `handler`

        Args:
            handler: Coroutine performing the write; raising means failure

        Returns:
            Dict with synced/retrying/dropped counts
        """
        stats = {"synced": 0, "retrying": 0, "dropped": 0}
        if self._processing:
            logger.debug("Sync already in progress, skipping")
            return stats

        self._processing = True
        try:
            items = await self.pending()
            if not items:
                return stats

            remaining: List[SyncQueueItem] = []
            for item in items:
                try:
                    await handler(item)
                    stats["synced"] += 1
                except Exception as e:
                    retry_count = item.retry_count + 1
                    if retry_count >= self.max_retries:
                        logger.error(
                            f"Dropping sync item {item.id} after {retry_count} attempts: {e}"
                        )
                        stats["dropped"] += 1
                    else:
                        logger.warning(f"Sync failed for {item.id} (attempt {retry_count}): {e}")
                        remaining.append(item.model_copy(update={"retry_count": retry_count}))
                        stats["retrying"] += 1

            # Keep anything enqueued while the handler was awaiting
            processed = {i.id for i in items}
            added = [i for i in await self.pending() if i.id not in processed]
            await self._replace(remaining + added)
            logger.info(
                f"Sync run complete: {stats['synced']} synced, "
                f"{stats['retrying']} retrying, {stats['dropped']} dropped"
            )
            return stats
        finally:
            self._processing = False


# Global instance (lazy initialization)
_sync_queue: Optional[SyncQueue] = None


def get_sync_queue() -> SyncQueue:
    """Get or create the global sync queue"""
    global _sync_queue
    if _sync_queue is None:
        _sync_queue = SyncQueue()
    return _sync_queue
