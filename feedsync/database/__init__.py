"""
Database module - SQLite storage for categories, feeds, articles and settings.

Uses repository pattern for better separation of concerns.
"""

from .connection import DatabaseConnection
from .models import DBArticle, DBCategory, DBFeed, DBSetting, NewArticle, NewFeed
from .article_repository import ArticleRepository
from .category_repository import CategoryRepository
from .feed_repository import FeedRepository
from .settings_repository import SettingsRepository
from .database import Database

__all__ = [
    "Database",
    "DatabaseConnection",
    "DBArticle",
    "DBCategory",
    "DBFeed",
    "DBSetting",
    "NewArticle",
    "NewFeed",
    "ArticleRepository",
    "CategoryRepository",
    "FeedRepository",
    "SettingsRepository",
]
