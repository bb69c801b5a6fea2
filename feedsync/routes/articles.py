"""
Article routes: single article lookup, read and favorite flags.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from ..config import get_db
from ..database import Database
from ..exceptions import require_article
from ..schemas import ArticleResponse

router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("/{article_id}")
async def get_article(
    article_id: int,
    db: Annotated[Database, Depends(get_db)]
) -> ArticleResponse:
    """Get a single stored article."""
    return ArticleResponse.from_db(require_article(db.get_article(article_id)))


@router.put("/{article_id}/read")
async def mark_read(
    article_id: int,
    db: Annotated[Database, Depends(get_db)],
    is_read: bool = True
) -> ArticleResponse:
    """Mark article as read/unread."""
    require_article(db.get_article(article_id))
    db.mark_read(article_id, is_read)
    return ArticleResponse.from_db(db.get_article(article_id))


@router.put("/{article_id}/favorite")
async def set_favorite(
    article_id: int,
    db: Annotated[Database, Depends(get_db)],
    is_favorite: bool = True
) -> ArticleResponse:
    """Flag or unflag an article as favorite."""
    require_article(db.get_article(article_id))
    db.set_favorite(article_id, is_favorite)
    return ArticleResponse.from_db(db.get_article(article_id))
