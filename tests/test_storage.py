"""Tests for the listing stores."""

import asyncio
import sqlite3

import pytest

from listingcrawler.config import Settings
from listingcrawler.errors import StoreError
from listingcrawler.runner import open_store, run_crawls
from listingcrawler.storage import PostgresListingStore, SQLiteListingStore


class TestSQLiteListingStore:
    """Test URL-keyed idempotent inserts."""

    def test_insert_and_lookup(self, store, sample_record):
        assert asyncio.run(store.insert(sample_record)) is True
        assert asyncio.run(store.exists_by_url(sample_record.listing_url))

        stored = store.get_by_url(sample_record.listing_url)
        assert stored == sample_record

    def test_missing_url(self, store):
        assert not asyncio.run(store.exists_by_url("https://www.apartments.com/none/"))
        assert store.get_by_url("https://www.apartments.com/none/") is None

    def test_save_if_new_is_idempotent(self, store, sample_record):
        """Saving the same URL twice leaves one row."""
        assert asyncio.run(store.save_if_new(sample_record)) is True
        assert asyncio.run(store.save_if_new(sample_record)) is False
        assert store.count() == 1

    def test_unique_url_when_check_is_skipped(self, store, sample_record):
        """Two racing crawls that both passed the existence check store one row."""
        duplicate = sample_record.model_copy(update={"id": "apartments-9-abc"})

        assert asyncio.run(store.insert(sample_record)) is True
        assert asyncio.run(store.insert(duplicate)) is False
        assert store.count() == 1
        assert store.get_by_url(sample_record.listing_url).id == sample_record.id

    def test_filter_by_source(self, store, sample_record):
        other = sample_record.model_copy(update={
            "id": "redfin-1-x",
            "source": "redfin",
            "listing_url": "https://www.redfin.com/home/1",
        })
        asyncio.run(store.insert(sample_record))
        asyncio.run(store.insert(other))

        assert store.count() == 2
        assert store.count("redfin") == 1
        assert [r.source for r in store.all("apartments")] == ["apartments"]
        assert [r.id for r in store.all()] == [sample_record.id, other.id]

    def test_persists_across_instances(self, tmp_path, sample_record):
        path = tmp_path / "nested" / "listings.db"
        asyncio.run(SQLiteListingStore(path).insert(sample_record))

        assert SQLiteListingStore(path).count() == 1

    def test_backend_errors_wrapped(self, tmp_path, sample_record):
        store = SQLiteListingStore(tmp_path / "listings.db")
        with sqlite3.connect(store.db_path) as conn:
            conn.execute("DROP TABLE listings")

        with pytest.raises(StoreError):
            asyncio.run(store.exists_by_url(sample_record.listing_url))
        with pytest.raises(StoreError):
            asyncio.run(store.insert(sample_record))

    def test_locked_database_does_not_block_loop(self, tmp_path, sample_record):
        """Other tasks keep running while an insert waits on a locked file."""
        store = SQLiteListingStore(tmp_path / "listings.db", timeout=0.5)
        holder = sqlite3.connect(store.db_path, isolation_level=None)
        holder.execute("BEGIN EXCLUSIVE")
        events = []

        async def insert():
            try:
                await store.insert(sample_record)
            except StoreError:
                events.append("insert failed")

        async def ticker():
            for _ in range(5):
                await asyncio.sleep(0.02)
            events.append("ticker")

        async def scenario():
            await asyncio.gather(insert(), ticker())

        try:
            asyncio.run(scenario())
        finally:
            holder.execute("ROLLBACK")
            holder.close()

        assert events == ["ticker", "insert failed"]


class TestPostgresListingStore:
    """Behaviour that needs no running database."""

    def test_requires_connect(self, sample_record):
        store = PostgresListingStore("postgresql://localhost/listings")

        with pytest.raises(StoreError, match="connect"):
            asyncio.run(store.exists_by_url(sample_record.listing_url))

    def test_close_without_pool(self):
        asyncio.run(PostgresListingStore("postgresql://localhost/listings").close())


def test_open_store_prefers_sqlite_path(tmp_path):
    store = asyncio.run(open_store(db_path=tmp_path / "l.db"))
    assert isinstance(store, SQLiteListingStore)
    assert asyncio.run(open_store()) is None


def test_run_crawls_falls_back_to_settings_db_path(tmp_path):
    """Without --db the CLI stores into the configured database."""
    db_path = tmp_path / "configured.db"
    settings = Settings(_env_file=None, db_path=db_path)

    outcomes = asyncio.run(run_crawls([], settings=settings))

    assert outcomes == []
    assert db_path.exists()
