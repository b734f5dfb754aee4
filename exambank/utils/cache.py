"""
Redis cache utility for exam paper lookups
"""
import redis
import json
import logging
from typing import Optional, Any, Iterable
from exambank.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based cache for exam details; disabled when redis is unreachable"""

    def __init__(self):
        try:
            self.redis_client = redis.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    @staticmethod
    def exam_key(exam_id: str) -> str:
        return f"exam:{exam_id}"

    def get(self, key: str) -> Optional[Any]:
        """Get a JSON value from cache, None on miss or error"""
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.EXAM_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def get_exam(self, exam_id: str) -> Optional[dict]:
        return self.get(self.exam_key(exam_id))

    def set_exam(self, exam_id: str, payload: dict) -> bool:
        return self.set(self.exam_key(exam_id), payload)

    def invalidate_exams(self, exam_ids: Iterable[str]) -> bool:
        """Drop cached exam details"""
        if not self.redis_client:
            return False

        keys = [self.exam_key(exam_id) for exam_id in exam_ids]
        if not keys:
            return True

        try:
            self.redis_client.delete(*keys)
            logger.info(f"Cache invalidated for {len(keys)} exam(s)")
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
