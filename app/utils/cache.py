"""
Caching Utilities
=================
Read-through Redis cache for the public movie listing.

Features:
- Deterministic keys built from the listing filters
- JSON payloads with a TTL (15 minutes by default)
- Glob-pattern invalidation after writes to the public movie set
- Graceful fallback: Redis errors and corrupt payloads count as misses

Usage:
    from app.utils.cache import get_cache, public_movies_key

    key = public_movies_key(genre, year, min_rating, max_rating, sort_by)
    movies = cache.get_movies(key)
    if movies is None:
        movies = load_from_db()
        cache.set_movies(key, movies)

    # After a write that changes the public listing
    cache.clear_public_movies()
"""
from typing import List, Optional
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError
from redis import Redis
from redis.exceptions import RedisError
import os
import logging
import threading

from app.schemas.movie import MovieResponse

load_dotenv()
logger = logging.getLogger(__name__)

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
CACHE_ENABLED = os.getenv("CACHE_ENABLED", "true").lower() == "true"
CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "MovieRecommendationAPI_")
PUBLIC_MOVIES_CACHE_TTL = int(os.getenv("PUBLIC_MOVIES_CACHE_TTL", 15 * 60))
REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", 5))

PUBLIC_MOVIES_KEY = "publicMovies"

_movie_list = TypeAdapter(List[MovieResponse])


def _key_part(value) -> str:
    """Absent parameters become an empty field; '%' and '-' are percent-escaped."""
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = value.value
    return str(value).replace("%", "%25").replace("-", "%2D")


def public_movies_key(
    genre: Optional[str] = None,
    year: Optional[int] = None,
    min_rating: Optional[float] = None,
    max_rating: Optional[float] = None,
    sort_by=None,
    prefix: Optional[str] = None,
) -> str:
    """
    Build the cache key for one public listing query.

    Fields never contain the separator once escaped, and only absent values
    serialize as an empty field, so two different parameter tuples cannot
    produce the same key. A blank genre means no genre filter.

    Example:
        public_movies_key("Sci-Fi", None, 5.0, None, "rating")
        -> "MovieRecommendationAPI_publicMovies-Sci%2DFi--5.0--rating"
    """
    if prefix is None:
        prefix = CACHE_KEY_PREFIX
    if genre is not None and not genre.strip():
        genre = None
    if isinstance(min_rating, int):
        min_rating = float(min_rating)
    if isinstance(max_rating, int):
        max_rating = float(max_rating)
    parts = [genre, year, min_rating, max_rating, sort_by]
    return prefix + PUBLIC_MOVIES_KEY + "-" + "-".join(_key_part(p) for p in parts)


class CacheStore:
    """
    Redis-backed store for serialized movie listings.

    A client of None disables caching: every lookup is a miss and writes
    are no-ops.
    """

    def __init__(self, client: Optional[Redis] = None, prefix: str = CACHE_KEY_PREFIX,
                 ttl: int = PUBLIC_MOVIES_CACHE_TTL):
        self._client = client
        self.prefix = prefix
        self.ttl = ttl
        self._hits = 0
        self._misses = 0
        # Routes run in the threadpool and share one store
        self._stats_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def key_for(self, genre=None, year=None, min_rating=None, max_rating=None, sort_by=None) -> str:
        return public_movies_key(genre, year, min_rating, max_rating, sort_by, prefix=self.prefix)

    def get_movies(self, key: str) -> Optional[List[MovieResponse]]:
        """
        Get a cached movie list.

        Returns:
            The cached movies in their stored order, or None on a miss
            (absent key, Redis unavailable or undecodable payload)
        """
        if not self._client:
            self._record(hit=False)
            return None

        try:
            payload = self._client.get(key)
        except RedisError as e:
            logger.warning(f"Redis GET failed for {key}: {str(e)}")
            self._record(hit=False)
            return None

        if payload is None:
            logger.info(f"Cache miss for {key}")
            self._record(hit=False)
            return None

        try:
            movies = _movie_list.validate_json(payload)
        except ValidationError:
            logger.warning(f"Discarding unreadable cache entry {key}")
            self._record(hit=False)
            return None

        logger.info(f"Cache hit for {key}")
        self._record(hit=True)
        return movies

    def set_movies(self, key: str, movies: List[MovieResponse], ttl: Optional[int] = None) -> bool:
        """
        Store a movie list, replacing whatever the key held.

        Returns:
            True if stored, False if Redis is disabled or failed
        """
        if not self._client:
            return False

        payload = _movie_list.dump_json(list(movies))
        try:
            self._client.delete(key)
            self._client.setex(key, ttl or self.ttl, payload)
        except RedisError as e:
            logger.warning(f"Redis SETEX failed for {key}: {str(e)}")
            return False

        logger.info(f"Cached {len(movies)} movies under {key}")
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete every key matching a glob pattern.

        Keys are enumerated with SCAN and removed one at a time. A key that
        fails to delete is logged and skipped; the TTL still expires it.

        Returns:
            Number of keys deleted
        """
        if not pattern:
            logger.warning("Empty cache invalidation pattern ignored")
            return 0
        if not self._client:
            return 0

        deleted = 0
        try:
            keys = list(self._client.scan_iter(match=pattern))
        except RedisError as e:
            logger.warning(f"Redis SCAN failed for pattern {pattern}: {str(e)}")
            return 0

        for key in keys:
            key_str = key.decode() if isinstance(key, bytes) else str(key)
            if not key_str:
                logger.warning("Skipping empty key found during cache invalidation")
                continue
            try:
                self._client.delete(key_str)
                deleted += 1
                logger.info(f"Removed cache key {key_str}")
            except RedisError as e:
                logger.error(f"Failed to remove cache key {key_str}: {str(e)}")

        return deleted

    def clear_public_movies(self) -> int:
        """Invalidate every cached public listing."""
        logger.info("Clearing public movie listing cache")
        return self.delete_pattern(f"{self.prefix}{PUBLIC_MOVIES_KEY}-*")

    def ping(self) -> bool:
        if not self._client:
            return False
        try:
            return bool(self._client.ping())
        except RedisError:
            return False

    def _record(self, hit: bool) -> None:
        with self._stats_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def get_stats(self) -> dict:
        """
        Get cache statistics.

        Counters are per process and reset on restart.

        Returns:
            Dictionary with cache performance metrics
        """
        with self._stats_lock:
            hits, misses = self._hits, self._misses
        total_requests = hits + misses
        hit_rate = (hits / total_requests * 100) if total_requests > 0 else 0

        return {
            'enabled': self.enabled,
            'hits': hits,
            'misses': misses,
            'hit_rate': f"{hit_rate:.2f}%"
        }

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._hits = 0
            self._misses = 0


def _create_store() -> CacheStore:
    if not CACHE_ENABLED:
        logger.info("Redis cache disabled by configuration")
        return CacheStore(None)
    # from_url does not connect until the first command
    client = Redis.from_url(
        REDIS_URL,
        socket_timeout=REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
    )
    return CacheStore(client)


# Global cache instance
_cache_store = _create_store()


def get_cache() -> CacheStore:
    """Cache dependency for FastAPI routes"""
    return _cache_store
