"""SQLite-based listing store.

Local persistence for crawled listings. The ``url`` column is UNIQUE and
inserts use ``INSERT OR IGNORE``, so the database itself guarantees one row
per canonical URL even when two crawls share the file.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..errors import StoreError
from ..models.listing import ListingRecord
from .base import ListingStore

logger = logging.getLogger(__name__)


class SQLiteListingStore(ListingStore):
    """SQLite store for listing records.

    Example:
        store = SQLiteListingStore(Path("data/listings.db"))
        if await store.save_if_new(record):
            print("Inserted", record.address)
        print(store.count())
    """

    def __init__(self, db_path: Path, timeout: float = 30.0):
        """Initialize the store.

        Args:
            db_path: SQLite database file; parent directories are created
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=self.timeout)

    def _init_db(self) -> None:
        """Initialize the database schema."""
        try:
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS listings (
                        id TEXT NOT NULL,
                        url TEXT NOT NULL UNIQUE,
                        source TEXT NOT NULL,
                        address TEXT,
                        price TEXT,
                        data JSON NOT NULL,
                        inserted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_listings_source ON listings(source)"
                )
                conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Could not initialize {self.db_path}: {e}") from e

    async def exists_by_url(self, url: str) -> bool:
        def _lookup():
            with self._connect() as conn:
                return conn.execute(
                    "SELECT 1 FROM listings WHERE url = ? LIMIT 1", (url,)
                ).fetchone()

        try:
            row = await asyncio.get_event_loop().run_in_executor(None, _lookup)
        except sqlite3.Error as e:
            raise StoreError(f"Lookup failed: {e}", url=url) from e
        return row is not None

    async def insert(self, record: ListingRecord) -> bool:
        def _insert() -> int:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO listings
                    (id, url, source, address, price, data, inserted_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.listing_url,
                        record.source,
                        record.address,
                        record.price,
                        record.model_dump_json(),
                        datetime.now().isoformat(),
                    ),
                )
                conn.commit()
                return cursor.rowcount

        # Blocking sqlite calls (up to ``timeout`` on a locked file) run off the loop
        try:
            rowcount = await asyncio.get_event_loop().run_in_executor(None, _insert)
        except sqlite3.Error as e:
            raise StoreError(f"Insert failed: {e}", url=record.listing_url) from e

        if rowcount == 0:
            logger.info(f"Already exists: {record.listing_url}")
            return False
        logger.info(f"Inserted: {record.address or record.listing_url}")
        return True

    def get_by_url(self, url: str) -> Optional[ListingRecord]:
        """Stored record for ``url``, or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM listings WHERE url = ?", (url,)
            ).fetchone()
        return ListingRecord(**json.loads(row[0])) if row else None

    def all(self, source: Optional[str] = None) -> list[ListingRecord]:
        """Stored records in insertion order, optionally for one source."""
        query = "SELECT data FROM listings"
        params: tuple = ()
        if source:
            query += " WHERE source = ?"
            params = (source,)
        query += " ORDER BY rowid"
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [ListingRecord(**json.loads(row[0])) for row in rows]

    def count(self, source: Optional[str] = None) -> int:
        """Number of stored listings."""
        with self._connect() as conn:
            if source:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM listings WHERE source = ?", (source,)
                )
            else:
                cursor = conn.execute("SELECT COUNT(*) FROM listings")
            return cursor.fetchone()[0]
