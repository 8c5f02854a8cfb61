"""
Profile Store - User profiles and prediction bundles

Redis-backed JSON documents keyed by user id, with an in-memory fallback.
Reads never raise: an unreachable store behaves like an unknown user.
"""

from typing import Dict, Optional

import redis.asyncio as redis
from loguru import logger
from pydantic import ValidationError

from ..config import settings
from ..schemas.ai_schemas import PredictionBundle, UserProfile


class ProfileStore:
    """
    Profile and prediction provider

    Uses Redis when available, otherwise in-memory dictionaries.
    """

    def __init__(self, redis_url: Optional[str] = None):
        if redis_url is None:
            redis_url = settings.redis_url if settings.REDIS_ENABLED else ""
        self.redis_url = redis_url
        self.redis_client: Optional[redis.Redis] = None

        self._profiles: Dict[str, UserProfile] = {}
        self._predictions: Dict[str, PredictionBundle] = {}

        self._initialized = False

    async def _ensure_connected(self):
        if self._initialized:
            return

        if self.redis_url:
            try:
                self.redis_client = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True
                )
                await self.redis_client.ping()
                logger.info("ProfileStore connected to Redis")
            except Exception as e:
                logger.warning(f"Redis connection failed, using in-memory profiles: {e}")
                self.redis_client = None
        self._initialized = True

    def _profile_key(self, user_id: str) -> str:
        return f"honeymoon:profile:{user_id}"

    def _predictions_key(self, user_id: str) -> str:
        return f"honeymoon:predictions:{user_id}"

    async def _read(self, key: str) -> Optional[str]:
        try:
            return await self.redis_client.get(key)
        except Exception as e:
            logger.error(f"Redis read error for {key}: {e}")
            return None

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """
        Fetch a user's profile

        Args:
            user_id: Opaque identity-provider user id

        Returns:
            UserProfile or None if the user is unknown
        """
        await self._ensure_connected()

        if not self.redis_client:
            return self._profiles.get(user_id)

        raw = await self._read(self._profile_key(user_id))
        if not raw:
            return None
        try:
            return UserProfile.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Invalid stored profile for {user_id}: {e}")
            return None

    async def get_predictions(self, user_id: str) -> PredictionBundle:
        """
        Fetch a user's prediction bundle

        Returns neutral predictions when none are stored.
        """
        await self._ensure_connected()

        if not self.redis_client:
            return self._predictions.get(user_id) or PredictionBundle()

        raw = await self._read(self._predictions_key(user_id))
        if not raw:
            return PredictionBundle()
        try:
            return PredictionBundle.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Invalid stored predictions for {user_id}: {e}")
            return PredictionBundle()

    async def save_profile(self, profile: UserProfile):
        await self._ensure_connected()

        self._profiles[profile.user_id] = profile
        if self.redis_client:
            await self.redis_client.set(self._profile_key(profile.user_id), profile.model_dump_json())
        logger.debug(f"Saved profile for {profile.user_id}")

    async def save_predictions(self, user_id: str, predictions: PredictionBundle):
        await self._ensure_connected()

        self._predictions[user_id] = predictions
        if self.redis_client:
            await self.redis_client.set(self._predictions_key(user_id), predictions.model_dump_json())
        logger.debug(f"Saved predictions for {user_id}")


# Global instance (lazy initialization)
_profile_store: Optional[ProfileStore] = None


def get_profile_store() -> ProfileStore:
    """Get or create the global profile store"""
    global _profile_store
    if _profile_store is None:
        _profile_store = ProfileStore()
    return _profile_store
