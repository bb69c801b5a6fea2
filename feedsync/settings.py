"""
Settings service - cached access to settings stored in the database.

Reads are served from a MemoryCache for up to five minutes. Writes go to the
database first and then evict the cached entry; the cache is never written
in place, so a read racing a write cannot pin a stale value.
"""

import logging

from .cache import MemoryCache
from .database import Database
from .database.models import DBSetting
from .exceptions import ConfigError, PersistenceError

logger = logging.getLogger(__name__)

FEED_UPDATE_INTERVAL_KEY = "FeedUpdate.IntervalMinutes"
DEFAULT_FEED_UPDATE_INTERVAL = 60
MIN_FEED_UPDATE_INTERVAL = 1
MAX_FEED_UPDATE_INTERVAL = 1440

CACHE_TTL_SECONDS = 5 * 60
_CACHE_KEY_PREFIX = "setting:"


def validate_interval(minutes: int) -> int:
    """Return minutes if it is a valid refresh interval, else raise ConfigError."""
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ConfigError(f"Feed update interval must be an integer, got {minutes!r}")
    if not MIN_FEED_UPDATE_INTERVAL <= minutes <= MAX_FEED_UPDATE_INTERVAL:
        raise ConfigError(
            f"Feed update interval must be between {MIN_FEED_UPDATE_INTERVAL} and "
            f"{MAX_FEED_UPDATE_INTERVAL} minutes, got {minutes}"
        )
    return minutes


class SettingsService:
    """Key/value settings with a short-lived read cache."""

    def __init__(self, db: Database, cache: MemoryCache | None = None):
        self._db = db
        self._cache = cache or MemoryCache(default_ttl=CACHE_TTL_SECONDS)

    def get(self, key: str) -> str | None:
        """Get a setting value, or None if unset or the store is unavailable."""
        cache_key = f"{_CACHE_KEY_PREFIX}{key}"

        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Setting {key} retrieved from cache")
            return cached

        try:
            setting = self._db.get_setting(key)
        except PersistenceError as e:
            logger.error(f"Error getting setting {key}: {e}")
            return None

        if setting is None:
            return None

        self._cache.set(cache_key, setting.value, CACHE_TTL_SECONDS)
        return setting.value

    def get_int(self, key: str) -> int | None:
        """Get a setting value as integer; None if unset or not numeric."""
        value = self.get(key)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError:
            logger.warning(f"Setting {key} is not an integer: {value!r}")
            return None

    def set(self, key: str, value: str, description: str | None = None) -> bool:
        """Store a setting, then invalidate its cache entry. Returns success."""
        try:
            self._db.set_setting(key, value, description)
        except PersistenceError as e:
            logger.error(f"Error setting {key} = {value}: {e}")
            return False

        self._cache.delete(f"{_CACHE_KEY_PREFIX}{key}")
        logger.info(f"Setting updated: {key} = {value}")
        return True

    def get_all(self) -> list[DBSetting]:
        """All stored settings ordered by key (empty if the store is unavailable)."""
        try:
            return self._db.get_all_settings()
        except PersistenceError as e:
            logger.error(f"Error getting all settings: {e}")
            return []

    def get_interval(self) -> int:
        """Feed update interval in minutes, falling back to the default."""
        interval = self.get_int(FEED_UPDATE_INTERVAL_KEY)
        if interval is None:
            return DEFAULT_FEED_UPDATE_INTERVAL
        try:
            validate_interval(interval)
        except ConfigError as e:
            logger.warning(f"Ignoring stored feed update interval: {e}")
            return DEFAULT_FEED_UPDATE_INTERVAL
        return interval

    def set_interval(self, minutes: int) -> bool:
        """Set the feed update interval. Out-of-range values are rejected."""
        try:
            validate_interval(minutes)
        except ConfigError as e:
            logger.warning(f"Invalid feed update interval: {e}")
            return False

        return self.set(
            FEED_UPDATE_INTERVAL_KEY,
            str(minutes),
            "Feed update interval in minutes",
        )

    def initialize_defaults(self):
        """Seed default settings that are not stored yet."""
        current = self.get(FEED_UPDATE_INTERVAL_KEY)
        if current is None:
            self.set_interval(DEFAULT_FEED_UPDATE_INTERVAL)
            logger.info(
                f"Initialized default feed update interval: {DEFAULT_FEED_UPDATE_INTERVAL} minutes"
            )
        else:
            logger.info(f"Settings already initialized, feed update interval: {current}")
