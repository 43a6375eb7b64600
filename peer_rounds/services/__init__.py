"""Services package - repository, cache, notifications and round operations."""
from .repository import RoundRepository
from .redis_cache import RedisCache, CacheKeys, get_redis_cache
from .notifications import (
    NotificationPort,
    LoggingNotifier,
    SmtpNotifier,
    notify_safely,
    get_notifier,
)
from .assessment_guard import AssessmentGuard
from .round_service import RoundService

__all__ = [
    "RoundRepository",
    "RedisCache",
    "CacheKeys",
    "get_redis_cache",
    "NotificationPort",
    "LoggingNotifier",
    "SmtpNotifier",
    "notify_safely",
    "get_notifier",
    "AssessmentGuard",
    "RoundService",
]
