"""Redis caching service for round views."""
import logging
from typing import Optional, Type, TypeVar
import redis
from pydantic import BaseModel
from peer_rounds.config import get_settings

logger = logging.getLogger(__name__)
T = TypeVar("T", bound=BaseModel)


class RedisCache:
    """Best-effort Redis cache with Pydantic model support.

    Every operation swallows Redis errors: a cache outage degrades to
    reading from the database, never to a failed request.
    """

    def __init__(self, host: str, port: int, db: int = 0, client: Optional[redis.Redis] = None):
        self.client = client or redis.Redis(
            host=host,
            port=port,
            db=db,
            decode_responses=True
        )

    def health_check(self) -> tuple[bool, Optional[str]]:
        """Check if Redis connection is healthy."""
        try:
            self.client.ping()
            return True, None
        except Exception as e:
            return False, str(e)

    def get(self, key: str, model: Type[T]) -> Optional[T]:
        """Get cached item and deserialize to Pydantic model."""
        try:
            data = self.client.get(key)
            if data:
                return model.model_validate_json(data)
            return None
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: BaseModel, ttl_seconds: int) -> bool:
        """Cache Pydantic model with TTL."""
        try:
            self.client.setex(key, ttl_seconds, value.model_dump_json())
            return True
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        """Invalidate cache entry."""
        try:
            self.client.delete(key)
            return True
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    def invalidate_round(self, round_id: str) -> bool:
        """Drop the cached detail view of a round."""
        return self.delete(CacheKeys.round(round_id))


class CacheKeys:
    """Cache key constants and builders."""
    ROUND = "round"

    @staticmethod
    def round(round_id: str) -> str:
        return f"round:{round_id}"


# Singleton instance
_redis_cache: Optional[RedisCache] = None


def get_redis_cache() -> RedisCache:
    """Get or create Redis cache singleton."""
    global _redis_cache
    if _redis_cache is None:
        settings = get_settings()
        _redis_cache = RedisCache(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db
        )
    return _redis_cache
