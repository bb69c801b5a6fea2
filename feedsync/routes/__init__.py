"""
API route modules.
"""

from .articles import router as articles_router
from .categories import router as categories_router
from .feeds import router as feeds_router
from .misc import router as misc_router

__all__ = [
    "articles_router",
    "categories_router",
    "feeds_router",
    "misc_router",
]
