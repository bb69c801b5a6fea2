"""
Service layer for business logic.

Services keep routes as thin HTTP adapters and receive their dependencies
via constructor injection.
"""

from typing import Annotated

from fastapi import Depends

from ..config import state, get_db
from ..database import Database

from .feed_service import FeedService

__all__ = [
    "FeedService",
    "get_feed_service",
    "FeedServiceDep",
]


def get_feed_service(db: Annotated[Database, Depends(get_db)]) -> FeedService:
    """Dependency to get FeedService instance."""
    return FeedService(
        db=db,
        sync_engine=state.sync_engine,
        notifier=state.notifier,
    )


FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
