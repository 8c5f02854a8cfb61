"""
Conversation Store - Persists raw chat messages per session id
"""

import json
from typing import Dict, List, Optional
from datetime import timedelta

import redis.asyncio as redis
from loguru import logger

from ..config import settings
from ..schemas.ai_schemas import Message


class StoreUnavailableError(RuntimeError):
    """Raised when a write cannot reach the backing store"""


class ConversationStore:
    """
    Stores and retrieves conversation history
    
    Uses Redis lists for fast access and automatic expiration.
    Falls back to in-memory storage if Redis is disabled or unreachable at
    connect time. Once connected, Redis write failures raise
    StoreUnavailableError so the caller can queue the write for replay.
    Query order is not guaranteed; callers sort by timestamp.
    """
    
    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_hours: Optional[int] = None
    ):
        """
        Initialize conversation store
        
        Args:
            redis_url: Redis connection URL ("" forces in-memory storage)
            ttl_hours: Hours to keep conversation history
        """
        if redis_url is None:
            redis_url = settings.redis_url if settings.REDIS_ENABLED else ""
        self.redis_url = redis_url
        self.ttl = timedelta(hours=ttl_hours or settings.CONVERSATION_TTL_HOURS)
        self.redis_client: Optional[redis.Redis] = None
        
        # Fallback in-memory storage
        self.memory_store: Dict[str, List[Message]] = {}
        
        self._initialized = False
    
    async def _ensure_connected(self):
        """Ensure Redis connection is established"""
        if self._initialized:
            return
        
        if not self.redis_url:
            logger.info("ConversationStore using in-memory storage")
            self._initialized = True
            return
        
        try:
            self.redis_client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            # Test connection
            await self.redis_client.ping()
            logger.info("ConversationStore connected to Redis")
        except Exception as e:
            logger.warning(f"Redis connection failed, using in-memory storage: {e}")
            self.redis_client = None
        self._initialized = True
    
    def _get_key(self, session_id: str) -> str:
        """Generate Redis key for a session"""
        return f"honeymoon:messages:{session_id}"
    
    async def append(self, session_id: str, message: Message) -> str:
        """
        Append a message to a session's history
        
        Args:
            session_id: Raw session identifier
            message: Message to persist
            
        Returns:
            Stored message id
        
        Raises:
            StoreUnavailableError: Redis is configured but the write failed
        """
        await self._ensure_connected()
        
        if not self.redis_client:
            self.memory_store.setdefault(session_id, []).append(message)
            logger.debug(f"Saved message to memory: session={session_id}")
            return message.id
        
        key = self._get_key(session_id)
        try:
            await self.redis_client.rpush(key, message.model_dump_json())
            await self.redis_client.expire(key, int(self.ttl.total_seconds()))
        except Exception as e:
            logger.error(f"Error saving message for session {session_id}: {e}")
            raise StoreUnavailableError(str(e)) from e
        
        logger.debug(f"Saved message to Redis: session={session_id}")
        return message.id
    
    async def query(self, session_id: str, limit: int = 100) -> List[Message]:
        """
        Get up to `limit` most recent messages for a session
        
        Args:
            session_id: Raw session identifier
            limit: Maximum messages to retrieve
            
        Returns:
            List of Message objects in storage order
        """
        await self._ensure_connected()
        
        if not self.redis_client:
            return list(self.memory_store.get(session_id, [])[-limit:])
        
        try:
            raw = await self.redis_client.lrange(self._get_key(session_id), -limit, -1)
        except Exception as e:
            logger.error(f"Error getting history for session {session_id}: {e}")
            return []
        
        messages = []
        for item in raw:
            try:
                messages.append(Message.model_validate(json.loads(item)))
            except ValueError as e:
                logger.warning(f"Skipping unreadable message in {session_id}: {e}")
        return messages
    
    async def delete_all(self, session_id: str) -> int:
        """
        Delete every message for a session
        
        Args:
            session_id: Session to clear
        
        Returns:
            Number of messages removed
        """
        await self._ensure_connected()
        
        count = len(self.memory_store.pop(session_id, []))
        
        if self.redis_client:
            key = self._get_key(session_id)
            try:
                count += await self.redis_client.llen(key)
                await self.redis_client.delete(key)
            except Exception as e:
                logger.error(f"Error clearing session {session_id}: {e}")
                raise StoreUnavailableError(str(e)) from e
        
        logger.info(f"Cleared session {session_id}: {count} messages")
        return count


# Global instance (lazy initialization)
_store_instance: Optional[ConversationStore] = None


def get_conversation_store() -> ConversationStore:
    """Get or create the global conversation store"""
    global _store_instance
    if _store_instance is None:
        _store_instance = ConversationStore()
    return _store_instance
