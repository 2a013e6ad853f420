"""SQLite item store implementation."""

import sqlite3
import json
import logging
from typing import List, Optional
from datetime import datetime
from pathlib import Path

from heirloom.store.base import MediaItemStore
from heirloom.core.models import MediaItem, MediaType
from heirloom.core.exceptions import StorageError
from heirloom.config import TaggingConfig

logger = logging.getLogger(__name__)


class SqliteItemStore(MediaItemStore):
    """
    SQLite implementation of the MediaItemStore interface.

    Items live in a single table; the flat tag list is stored as a JSON array.
    """

    def __init__(
        self,
        config: Optional[TaggingConfig] = None,
        db_path: Optional[Path] = None,
    ):
        """
        Initialize SQLite item store.

        Args:
            config: Tagging configuration. If None, uses global config.
            db_path: Explicit database path, overriding config.sqlite_path
        """
        if config is None:
            from heirloom.config import get_config
            config = get_config()

        self.config = config
        self.db_path = Path(db_path) if db_path else config.sqlite_path_expanded
        self.conn: Optional[sqlite3.Connection] = None

    async def initialize(self) -> None:
        """Open the database and create tables."""
        try:
            self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS media_items (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    media_type TEXT NOT NULL,
                    tags TEXT NOT NULL,
                    date TEXT,
                    position INTEGER NOT NULL
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_media_items_position ON media_items(position)"
            )
            self.conn.commit()
            logger.info(f"SQLite item store initialized at {self.db_path}")
        except sqlite3.Error as e:
            raise StorageError(f"Failed to initialize SQLite store: {e}") from e

    async def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if self.conn is None:
            raise StorageError(
                "SQLite store is not initialized",
                solution="Call 'await store.initialize()' before using the store.",
            )
        return self.conn

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> MediaItem:
        return MediaItem(
            id=row["id"],
            title=row["title"],
            media_type=MediaType(row["media_type"]),
            tags=json.loads(row["tags"]),
            date=datetime.fromisoformat(row["date"]) if row["date"] else None,
        )

    async def get_item(self, item_id: str) -> Optional[MediaItem]:
        conn = self._require_conn()
        try:
            row = conn.execute(
                "SELECT * FROM media_items WHERE id = ?", (item_id,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to read item {item_id}: {e}") from e
        return self._row_to_item(row) if row else None

    async def list_items(self) -> List[MediaItem]:
        conn = self._require_conn()
        try:
            rows = conn.execute("SELECT * FROM media_items ORDER BY position").fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to list items: {e}") from e
        return [self._row_to_item(row) for row in rows]

    async def save_item(self, item: MediaItem) -> None:
        conn = self._require_conn()
        try:
            existing = conn.execute(
                "SELECT position FROM media_items WHERE id = ?", (item.id,)
            ).fetchone()
            if existing:
                position = existing["position"]
            else:
                position = conn.execute(
                    "SELECT COALESCE(MAX(position), -1) + 1 FROM media_items"
                ).fetchone()[0]

            conn.execute(
                """
                INSERT OR REPLACE INTO media_items (id, title, media_type, tags, date, position)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.title,
                    item.media_type.value,
                    json.dumps(item.tags),
                    item.date.isoformat() if item.date else None,
                    position,
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save item {item.id}: {e}") from e

    async def update_tags(self, item_id: str, tags: List[str]) -> bool:
        conn = self._require_conn()
        try:
            cursor = conn.execute(
                "UPDATE media_items SET tags = ? WHERE id = ?",
                (json.dumps(list(tags)), item_id),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to update tags for {item_id}: {e}") from e
        return cursor.rowcount > 0

    async def delete_item(self, item_id: str) -> bool:
        conn = self._require_conn()
        try:
            cursor = conn.execute("DELETE FROM media_items WHERE id = ?", (item_id,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to delete item {item_id}: {e}") from e
        return cursor.rowcount > 0
