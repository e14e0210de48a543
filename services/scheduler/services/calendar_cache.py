"""
Redis read-through cache for calendar pages and user lookups.

Caching is an optimization only: every cache failure is logged and treated as
a miss, and with REDIS_URL unset (or CACHE_ENABLED=false) the wrappers are
never built. Mutations call invalidate_user_calendar after their unit of work
commits.
"""

import hashlib
import json
from datetime import date
from threading import Lock
from typing import Any, Dict, Optional
from uuid import UUID

import redis
from sqlalchemy.orm import Session

from services.common.logging_config import get_logger
from services.scheduler.models import SlotStatus
from services.scheduler.schemas.time_slots import PageableUserTimeSlotsResponse
from services.scheduler.schemas.users import UserRecord
from services.scheduler.services.calendar_projector import CalendarProjector
from services.scheduler.services.user_directory import UserDirectory, normalize_email
from services.scheduler.settings import get_settings

logger = get_logger(__name__)

CACHE_PREFIX = "scheduler"
CALENDAR_NAMESPACE = "calendar"
USER_NAMESPACE = "user"


class CacheManager:
    """
    Redis-backed JSON cache with per-key TTL.

    The connection is opened lazily on first use.
    """

    def __init__(self, redis_url: str, default_ttl_seconds: int):
        self.redis_url = redis_url
        self.default_ttl_seconds = default_ttl_seconds
        self._redis: Optional[redis.Redis] = None
        self._connection_lock = Lock()

    def _get_redis(self) -> redis.Redis:
        """Get Redis connection with lazy initialization."""
        if self._redis is None:
            with self._connection_lock:
                if self._redis is None:
                    client = redis.from_url(
                        self.redis_url,
                        encoding="utf-8",
                        decode_responses=True,
                        socket_timeout=5.0,
                        socket_connect_timeout=5.0,
                        retry_on_timeout=True,
                    )
                    client.ping()
                    logger.info("Redis connection established")
                    self._redis = client
        return self._redis

    def get_from_cache(self, key: str) -> Optional[Any]:
        """
        Retrieve data from cache.

        Args:
            key: Cache key to retrieve

        Returns:
            Cached data if present, None on a miss or any cache error
        """
        try:
            cached_data = self._get_redis().get(key)
            if cached_data is None:
                logger.debug("Cache miss", key=key)
                return None
            logger.debug("Cache hit", key=key)
            return json.loads(cached_data)
        except (redis.RedisError, ValueError) as e:
            logger.error("Failed to read from cache", key=key, error=str(e))
            return None

    def set_to_cache(
        self, key: str, data: Any, ttl_seconds: Optional[int] = None
    ) -> bool:
        """
        Store JSON-serializable data under ``key``.

        Args:
            key: Cache key to store under
            data: Data to cache
            ttl_seconds: Time to live; defaults to the manager's TTL

        Returns:
            True if stored, False otherwise
        """
        if ttl_seconds is None:
            ttl_seconds = self.default_ttl_seconds
        try:
            self._get_redis().setex(key, ttl_seconds, json.dumps(data))
            logger.debug("Cached data", key=key, ttl_seconds=ttl_seconds)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.error("Failed to write to cache", key=key, error=str(e))
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all cache keys matching a glob pattern (e.g. "scheduler:123:*").

        Returns:
            Number of keys deleted
        """
        try:
            redis_client = self._get_redis()
            keys = list(redis_client.scan_iter(match=pattern))
            if not keys:
                logger.debug("No keys found matching pattern", pattern=pattern)
                return 0
            deleted_count = redis_client.delete(*keys)
            logger.debug("Deleted cache keys", pattern=pattern, count=deleted_count)
            return deleted_count
        except redis.RedisError as e:
            logger.error(
                "Failed to delete keys matching pattern", pattern=pattern, error=str(e)
            )
            return 0

    def health_check(self) -> bool:
        try:
            self._get_redis().ping()
            return True
        except redis.RedisError as e:
            logger.error("Redis health check failed", error=str(e))
            return False

    def close(self) -> None:
        if self._redis is not None:
            self._redis.close()
            self._redis = None
            logger.info("Redis connection closed")


def generate_cache_key(user_id: str, namespace: str, params: Dict[str, Any]) -> str:
    """
    Build a deterministic cache key from a user, a namespace and query params.

    Examples:
        >>> generate_cache_key("u1", "calendar", {"page": 0, "size": 10})
        'scheduler:u1:calendar:b2c564a93858b407a162ef9109c98522'
    """
    sorted_params = dict(sorted(params.items()))
    param_string = json.dumps(sorted_params, sort_keys=True, separators=(",", ":"))
    param_hash = hashlib.md5(param_string.encode()).hexdigest()
    return f"{CACHE_PREFIX}:{user_id}:{namespace}:{param_hash}"


def calendar_cache_pattern(user_id: UUID | str) -> str:
    return f"{CACHE_PREFIX}:{user_id}:{CALENDAR_NAMESPACE}:*"


class CachedCalendarProjector:
    """Read-through wrapper around CalendarProjector.project."""

    def __init__(self, projector: CalendarProjector, cache: CacheManager):
        self.projector = projector
        self.cache = cache

    def project(
        self,
        user_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[SlotStatus] = None,
        page: int = 0,
        size: int = 10,
    ) -> PageableUserTimeSlotsResponse:
        key = generate_cache_key(
            str(user_id),
            CALENDAR_NAMESPACE,
            {
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
                "status": status.value if status else None,
                "page": page,
                "size": size,
            },
        )
        cached = self.cache.get_from_cache(key)
        if cached is not None:
            return PageableUserTimeSlotsResponse.model_validate(cached)

        response = self.projector.project(
            user_id,
            start_date=start_date,
            end_date=end_date,
            status=status,
            page=page,
            size=size,
        )
        self.cache.set_to_cache(key, response.model_dump(mode="json"))
        return response


class CachedUserDirectory:
    """Read-through wrapper around UserDirectory lookups.

    Users are immutable once created, so entries only leave by TTL. Misses on
    email lookups are not cached since that address may sign up later.
    """

    def __init__(self, directory: UserDirectory, cache: CacheManager):
        self.directory = directory
        self.cache = cache

    def find_by_id(self, user_id: UUID) -> UserRecord:
        key = generate_cache_key(str(user_id), USER_NAMESPACE, {"by": "id"})
        cached = self.cache.get_from_cache(key)
        if cached is not None:
            return UserRecord.model_validate(cached)

        user = self.directory.find_by_id(user_id)
        self.cache.set_to_cache(key, user.model_dump(mode="json"))
        return user

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        key = generate_cache_key(
            "lookup", USER_NAMESPACE, {"email": normalize_email(email)}
        )
        cached = self.cache.get_from_cache(key)
        if cached is not None:
            return UserRecord.model_validate(cached)

        user = self.directory.find_by_email(email)
        if user is not None:
            self.cache.set_to_cache(key, user.model_dump(mode="json"))
        return user


_cache_manager: Optional[CacheManager] = None


def get_cache_manager() -> Optional[CacheManager]:
    """Process-wide cache manager, or None when caching is switched off."""
    global _cache_manager
    settings = get_settings()
    if not settings.cache_active:
        return None
    if _cache_manager is None:
        _cache_manager = CacheManager(
            settings.redis_url, settings.calendar_cache_ttl_seconds
        )
    return _cache_manager


def reset_cache_manager() -> None:
    global _cache_manager
    if _cache_manager is not None:
        _cache_manager.close()
    _cache_manager = None


def user_directory_for(session: Session) -> UserDirectory | CachedUserDirectory:
    directory = UserDirectory(session)
    cache = get_cache_manager()
    if cache is None:
        return directory
    return CachedUserDirectory(directory, cache)


def calendar_projector_for(
    session: Session,
) -> CalendarProjector | CachedCalendarProjector:
    projector = CalendarProjector(session, users=user_directory_for(session))
    cache = get_cache_manager()
    if cache is None:
        return projector
    return CachedCalendarProjector(projector, cache)


def invalidate_user_calendar(user_id: UUID | str) -> int:
    """Drop every cached calendar page of ``user_id``."""
    cache = get_cache_manager()
    if cache is None:
        return 0
    deleted = cache.delete_pattern(calendar_cache_pattern(user_id))
    logger.info("Calendar cache invalidated", user_id=str(user_id), deleted=deleted)
    return deleted
