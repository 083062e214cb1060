"""Postgres listing store backed by an asyncpg connection pool."""

import logging
from typing import Optional

import asyncpg

from ..errors import StoreError
from ..models.listing import ListingRecord
from .base import ListingStore

logger = logging.getLogger(__name__)


class PostgresListingStore(ListingStore):
    """Stores listings in the ``properties`` table.

    A unique index on ``url`` makes concurrent crawls safe: a racing insert
    hits ``ON CONFLICT DO NOTHING`` instead of creating a duplicate row.

    Example:
        store = PostgresListingStore(os.environ["DATABASE_URL"])
        await store.connect()
        try:
            result = await CrawlOrchestrator(store=store).run(request)
        finally:
            await store.close()
    """

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 5):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Create the connection pool and the table."""
        if self._pool is not None:
            return
        try:
            self._pool = await asyncpg.create_pool(
                self.dsn, min_size=self.min_size, max_size=self.max_size
            )
            await self._create_tables()
        except (OSError, asyncpg.PostgresError) as e:
            raise StoreError(f"Could not connect to Postgres: {e}") from e
        logger.info("Database pool created and tables initialized")

    def _get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StoreError("Database pool not initialized. Call connect() first.")
        return self._pool

    async def _create_tables(self) -> None:
        async with self._get_pool().acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS properties (
                    id SERIAL PRIMARY KEY,
                    listing_id TEXT NOT NULL,
                    source TEXT NOT NULL,
                    title TEXT,
                    address TEXT,
                    price TEXT,
                    url TEXT NOT NULL,
                    data JSONB NOT NULL,
                    inserted_at TIMESTAMPTZ DEFAULT NOW()
                )
            """)
            await conn.execute("""
                CREATE UNIQUE INDEX IF NOT EXISTS idx_properties_url
                ON properties(url)
            """)

    async def exists_by_url(self, url: str) -> bool:
        try:
            async with self._get_pool().acquire() as conn:
                row = await conn.fetchval(
                    "SELECT 1 FROM properties WHERE url = $1", url
                )
        except asyncpg.PostgresError as e:
            raise StoreError(f"Lookup failed: {e}", url=url) from e
        return row is not None

    async def insert(self, record: ListingRecord) -> bool:
        try:
            async with self._get_pool().acquire() as conn:
                status = await conn.execute(
                    """
                    INSERT INTO properties
                    (listing_id, source, title, address, price, url, data)
                    VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb)
                    ON CONFLICT (url) DO NOTHING
                    """,
                    record.id,
                    record.source,
                    record.title,
                    record.address,
                    record.price,
                    record.listing_url,
                    record.model_dump_json(),
                )
        except asyncpg.PostgresError as e:
            raise StoreError(f"Insert failed: {e}", url=record.listing_url) from e

        # asyncpg returns the command tag, e.g. "INSERT 0 1"
        inserted = status.endswith(" 1")
        if inserted:
            logger.info(f"Inserted: {record.address or record.listing_url}")
        else:
            logger.info(f"Already exists: {record.listing_url}")
        return inserted

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Database pool closed")
