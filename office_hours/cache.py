"""
Pair score cache

Scores are cached per (mentee, mentor) as plain integers under
``match:{mentee_id}:{mentor_id}``. Redis trouble reads as a miss; the
scorer itself never touches the cache.
"""
import logging
from typing import Optional

import redis

from .config import MATCH_CACHE_TTL
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)


def build_match_key(mentee_id: int, mentor_id: int) -> str:
    return f"match:{mentee_id}:{mentor_id}"


class MatchScoreCache:
    """Integer match scores in Redis, keyed by mentee/mentor pair"""

    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = MATCH_CACHE_TTL):
        self._client = client
        self.ttl = ttl

    def _redis(self) -> Optional[redis.Redis]:
        if self._client is not None:
            return self._client
        try:
            return get_redis_client()
        except redis.RedisError:
            # get_redis_client already logged the failure and backs off
            return None

    def get_score(self, mentee_id: int, mentor_id: int) -> Optional[int]:
        client = self._redis()
        if client is None:
            return None

        key = build_match_key(mentee_id, mentor_id)
        try:
            raw = client.get(key)
        except redis.RedisError as e:
            logger.error(f"❌ Score cache read failed for {key}: {e}")
            return None
        if raw is None:
            return None

        try:
            return int(raw)
        except ValueError:
            logger.warning(f"⚠️ Ignoring unreadable cached score {key}={raw!r}")
            return None

    def set_score(self, mentee_id: int, mentor_id: int, score: int) -> bool:
        client = self._redis()
        if client is None:
            return False

        key = build_match_key(mentee_id, mentor_id)
        try:
            client.setex(key, self.ttl, int(score))
        except redis.RedisError as e:
            logger.error(f"❌ Score cache write failed for {key}: {e}")
            return False
        logger.debug(f"✅ Cached score {key}={score} (TTL: {self.ttl}s)")
        return True

    def invalidate_mentee(self, mentee_id: int) -> int:
        """Forget every cached score for one mentee; returns how many keys went"""
        client = self._redis()
        if client is None:
            return 0

        pattern = f"match:{mentee_id}:*"
        try:
            keys = list(client.scan_iter(match=pattern))
            deleted = client.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.error(f"❌ Score cache invalidation failed for {pattern}: {e}")
            return 0
        if deleted:
            logger.debug(f"🗑️ Invalidated {deleted} cached scores for mentee {mentee_id}")
        return deleted


# Shared instance used by the matching service
match_score_cache = MatchScoreCache()
