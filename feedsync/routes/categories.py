"""
Category routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from ..config import state, get_db
from ..database import Database
from ..exceptions import PersistenceError, require_category
from ..schemas import CategoryResponse, CreateCategoryRequest

router = APIRouter(prefix="/categories", tags=["categories"])


def _categories_changed():
    if state.notifier:
        state.notifier.notify_categories_changed()


@router.get("")
async def list_categories(
    db: Annotated[Database, Depends(get_db)]
) -> list[CategoryResponse]:
    """List categories with their feed counts."""
    return [CategoryResponse.from_db(c) for c in db.get_categories()]


@router.post("")
async def create_category(
    request: CreateCategoryRequest,
    db: Annotated[Database, Depends(get_db)]
) -> CategoryResponse:
    """Create a category."""
    name = request.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Category name is required")
    if db.categories.get_by_name(name):
        raise HTTPException(status_code=400, detail="Category already exists")

    try:
        category_id = db.add_category(name)
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=f"Could not create category: {e}")

    _categories_changed()
    return CategoryResponse.from_db(require_category(db.get_category(category_id)))


@router.delete("/{category_id}")
async def delete_category(
    category_id: int,
    db: Annotated[Database, Depends(get_db)]
) -> dict:
    """Delete a category together with its feeds and their articles."""
    require_category(db.get_category(category_id))
    db.delete_category(category_id)

    _categories_changed()
    if state.notifier:
        state.notifier.notify_feeds_changed()
    return {"success": True}
