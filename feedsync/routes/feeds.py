"""
Feed routes: subscription management, articles, refresh.
"""

from fastapi import APIRouter, BackgroundTasks, Query

from ..schemas import (
    AddFeedRequest,
    ArticleResponse,
    FeedRefreshResponse,
    FeedResponse,
    MoveFeedRequest,
)
from ..services import FeedServiceDep

router = APIRouter(prefix="/feeds", tags=["feeds"])


# ─────────────────────────────────────────────────────────────
# Feed Management
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_feeds(
    service: FeedServiceDep,
    category_id: int | None = None,
) -> list[FeedResponse]:
    """List all subscribed feeds."""
    return [FeedResponse.from_db(f) for f in service.list_feeds(category_id)]


@router.post("")
async def add_feed(
    request: AddFeedRequest,
    service: FeedServiceDep,
) -> FeedResponse:
    """Subscribe to a new feed and import its current articles."""
    feed = await service.subscribe(
        request.url,
        category_id=request.category_id,
        category_name=request.category,
        max_articles=request.max_articles,
    )
    return FeedResponse.from_db(feed)


@router.delete("/{feed_id}")
async def remove_feed(feed_id: int, service: FeedServiceDep) -> dict:
    """Unsubscribe from a feed."""
    service.unsubscribe(feed_id)
    return {"success": True}


@router.put("/{feed_id}/category")
async def move_feed(
    feed_id: int,
    request: MoveFeedRequest,
    service: FeedServiceDep,
) -> FeedResponse:
    """Move a feed to another category."""
    return FeedResponse.from_db(service.move_feed(feed_id, request.category_id))


@router.get("/{feed_id}/articles")
async def list_feed_articles(
    feed_id: int,
    service: FeedServiceDep,
    unread_only: bool = False,
    favorites_only: bool = False,
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> list[ArticleResponse]:
    """List stored articles of one feed, newest first."""
    articles = service.list_articles(feed_id, unread_only, favorites_only, limit, offset)
    return [ArticleResponse.from_db(a) for a in articles]


# ─────────────────────────────────────────────────────────────
# Refresh
# ─────────────────────────────────────────────────────────────

@router.post("/refresh")
async def refresh_feeds(
    service: FeedServiceDep,
    background_tasks: BackgroundTasks,
) -> dict:
    """Trigger refresh of all feeds (runs in background)."""
    if not service.schedule_refresh_all(background_tasks):
        return {"success": True, "message": "Refresh already in progress"}
    return {"success": True, "message": "Refresh started"}


@router.post("/{feed_id}/refresh")
async def refresh_feed(feed_id: int, service: FeedServiceDep) -> FeedRefreshResponse:
    """Refresh a single feed now."""
    success = await service.refresh_feed(feed_id)
    feed = service.db.get_feed(feed_id)
    return FeedRefreshResponse(
        success=success,
        feed=FeedResponse.from_db(feed) if feed else None,
    )
