"""
Configuration and application state management.
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .database import Database
    from .feeds import FeedParser
    from .icons import IconResolver
    from .notifier import ChangeNotifier
    from .scheduler import FeedUpdateScheduler
    from .settings import SettingsService
    from .sync import SyncEngine

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration from environment."""
    DB_PATH: Path = Path(os.getenv("DB_PATH", "./data/feedsync.db"))
    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Outbound HTTP (seconds)
    FETCH_TIMEOUT: float = float(os.getenv("FETCH_TIMEOUT", "10"))
    ICON_PAGE_TIMEOUT: float = float(os.getenv("ICON_PAGE_TIMEOUT", "10"))
    FAVICON_PROBE_TIMEOUT: float = float(os.getenv("FAVICON_PROBE_TIMEOUT", "5"))
    USER_AGENT: str = os.getenv(
        "USER_AGENT", "FeedSync/1.0 (RSS/Atom feed synchronizer)"
    )

    # Background refresh
    SCHEDULER_ENABLED: bool = _parse_bool(os.getenv("SCHEDULER_ENABLED"), default=True)
    SCHEDULER_WARMUP_SECONDS: float = float(os.getenv("SCHEDULER_WARMUP_SECONDS", "120"))


config = Config()


def configure_logging(level: str | None = None) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


class AppState:
    """Shared application state, wired once at startup."""
    db: "Database | None" = None
    settings: "SettingsService | None" = None
    notifier: "ChangeNotifier | None" = None
    feed_parser: "FeedParser | None" = None
    icon_resolver: "IconResolver | None" = None
    sync_engine: "SyncEngine | None" = None
    scheduler: "FeedUpdateScheduler | None" = None
    refresh_in_progress: bool = False


state = AppState()


def get_db() -> "Database":
    """Dependency to get database instance."""
    if not state.db:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return state.db


def get_settings() -> "SettingsService":
    """Dependency to get the settings service."""
    if not state.settings:
        raise HTTPException(status_code=500, detail="Settings not initialized")
    return state.settings
