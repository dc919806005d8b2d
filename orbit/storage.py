"""Persistence boundary — SQLite read/write of item records.

The ranking core only ever sees full ``Item`` values; this module decides how
they are laid out on disk. Signals and computed fields are stored as JSON so
the histograms survive as-is.
Uses WAL mode and short transactions.
"""

import json
import os
import sqlite3
import time
from pathlib import Path
from typing import Iterable, Optional

from orbit.models import Item

SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    detail TEXT,
    url TEXT,
    signals TEXT NOT NULL,
    computed TEXT,
    created_at REAL NOT NULL,
    updated_at REAL NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_items_created_at ON items(created_at);
"""


class ItemDB:
    """Direct SQLite access to the item collection."""

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path, timeout=10)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA busy_timeout=5000")
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    def close(self):
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # --- Read Operations ---

    def load(self) -> list[Item]:
        """Fetch every item, oldest first."""
        cursor = self.conn.execute("SELECT * FROM items ORDER BY created_at ASC, id ASC")
        return [self._row_to_item(row) for row in cursor.fetchall()]

    def get(self, item_id: str) -> Optional[Item]:
        cursor = self.conn.execute("SELECT * FROM items WHERE id = ?", (item_id,))
        row = cursor.fetchone()
        return self._row_to_item(row) if row else None

    def count(self) -> int:
        cursor = self.conn.execute("SELECT COUNT(*) FROM items")
        return cursor.fetchone()[0]

    def get_stats(self) -> dict:
        db_size = os.path.getsize(self.db_path) if os.path.exists(self.db_path) else 0
        return {
            "item_count": self.count(),
            "db_size_mb": db_size / (1024 * 1024),
        }

    # --- Write Operations ---

    def save(self, items: Iterable[Item]):
        """Replace the whole collection in one transaction."""
        with self.conn:
            self.conn.execute("DELETE FROM items")
            for item in items:
                self._write(item)

    def upsert(self, item_id: str, item: Item):
        """Insert or replace a single item."""
        if item.id != item_id:
            raise ValueError(f"Item id {item.id!r} does not match {item_id!r}")
        with self.conn:
            self._write(item)

    def delete(self, item_id: str):
        with self.conn:
            self.conn.execute("DELETE FROM items WHERE id = ?", (item_id,))

    # --- Helpers ---

    def _write(self, item: Item):
        self.conn.execute(
            """INSERT OR REPLACE INTO items (id, title, detail, url, signals, computed,
               created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                item.id,
                item.title,
                item.detail,
                item.url,
                json.dumps(item.signals.to_dict()),
                json.dumps(item.computed.to_dict()),
                item.signals.created_at,
                time.time(),
            ),
        )

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> Item:
        return Item.from_dict({
            "id": row["id"],
            "title": row["title"],
            "detail": row["detail"],
            "url": row["url"],
            "signals": json.loads(row["signals"]),
            "computed": json.loads(row["computed"]) if row["computed"] else {},
        })
