"""
FeedSync API Server

FastAPI application providing endpoints for:
- Feed subscription management (add, remove, move, refresh)
- Categories
- Settings (feed update interval)
- Scheduler status
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from . import __version__
from .config import config, configure_logging, state
from .database import Database
from .exceptions import PersistenceError
from .feeds import FeedParser
from .icons import IconResolver
from .notifier import ChangeNotifier
from .routes import articles_router, categories_router, feeds_router, misc_router
from .scheduler import FeedUpdateScheduler
from .settings import SettingsService
from .sync import SyncEngine

logger = logging.getLogger(__name__)


def init_state():
    """Wire the application components into the shared state."""
    try:
        state.db = Database(config.DB_PATH)
    except PersistenceError:
        logger.critical(f"Could not open database at {config.DB_PATH}")
        raise

    state.settings = SettingsService(state.db)
    state.settings.initialize_defaults()

    state.notifier = ChangeNotifier()
    state.feed_parser = FeedParser()
    state.icon_resolver = IconResolver()
    state.sync_engine = SyncEngine(
        state.db, state.feed_parser, state.icon_resolver, state.notifier
    )
    state.scheduler = FeedUpdateScheduler(
        state.sync_engine,
        state.settings,
        warmup_seconds=config.SCHEDULER_WARMUP_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.db is None:
        configure_logging()
        init_state()

        if config.SCHEDULER_ENABLED:
            await state.scheduler.start()
        else:
            logger.info("Feed update scheduler disabled by configuration")

    yield

    # Shutdown
    if state.scheduler:
        try:
            await state.scheduler.stop()
        except Exception as e:
            logger.warning(f"Error stopping scheduler: {e}")


app = FastAPI(
    title="FeedSync API",
    version=__version__,
    lifespan=lifespan
)

# Include routers
app.include_router(misc_router)
app.include_router(feeds_router)
app.include_router(categories_router)
app.include_router(articles_router)
