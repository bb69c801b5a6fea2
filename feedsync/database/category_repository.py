"""
Category repository - CRUD operations for categories.
"""

import sqlite3

from .connection import DatabaseConnection
from .converters import row_to_category
from .models import DBCategory


class CategoryRepository:
    """Repository for category operations."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def add(self, name: str) -> int:
        """Add a new category. Returns category ID."""
        with self._db.conn() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (name) VALUES (?)", (name,)
            )
            return cursor.lastrowid

    def get(self, category_id: int) -> DBCategory | None:
        """Get single category by ID."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
            return row_to_category(row) if row else None

    def get_by_name(self, name: str) -> DBCategory | None:
        """Get category by its unique name."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM categories WHERE name = ?", (name,)
            ).fetchone()
            return row_to_category(row) if row else None

    def get_or_create(self, name: str) -> int:
        """Return the ID of the named category, creating it if needed."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT id FROM categories WHERE name = ?", (name,)
            ).fetchone()
            if row:
                return row["id"]
            try:
                cursor = conn.execute(
                    "INSERT INTO categories (name) VALUES (?)", (name,)
                )
                return cursor.lastrowid
            except sqlite3.IntegrityError:
                # Created concurrently
                row = conn.execute(
                    "SELECT id FROM categories WHERE name = ?", (name,)
                ).fetchone()
                return row["id"]

    def get_all(self) -> list[DBCategory]:
        """Get all categories with their feed counts."""
        with self._db.conn() as conn:
            rows = conn.execute("""
                SELECT c.*, COUNT(f.id) as feed_count
                FROM categories c
                LEFT JOIN feeds f ON c.id = f.category_id
                GROUP BY c.id
                ORDER BY c.name
            """).fetchall()
            return [row_to_category(row) for row in rows]

    def delete(self, category_id: int):
        """Delete category; its feeds and their articles cascade."""
        with self._db.conn() as conn:
            conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
