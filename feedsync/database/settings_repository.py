"""
Settings repository - operations for app settings.
"""

from datetime import datetime, timezone

from .connection import DatabaseConnection
from .converters import format_timestamp, row_to_setting
from .models import DBSetting


class SettingsRepository:
    """Repository for application settings."""

    def __init__(self, db: DatabaseConnection):
        self._db = db

    def get(self, key: str) -> DBSetting | None:
        """Get a setting row."""
        with self._db.conn() as conn:
            row = conn.execute(
                "SELECT * FROM settings WHERE key = ?", (key,)
            ).fetchone()
            return row_to_setting(row) if row else None

    def set(self, key: str, value: str, description: str | None = None):
        """Insert or update a setting. A None description keeps the stored one."""
        with self._db.conn() as conn:
            conn.execute(
                """INSERT INTO settings (key, value, description, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value,
                   description = COALESCE(excluded.description, settings.description),
                   updated_at = excluded.updated_at""",
                (key, value, description, format_timestamp(datetime.now(timezone.utc)))
            )

    def get_all(self) -> list[DBSetting]:
        """Get all settings ordered by key."""
        with self._db.conn() as conn:
            rows = conn.execute("SELECT * FROM settings ORDER BY key").fetchall()
            return [row_to_setting(row) for row in rows]
