"""Abstract listing store.

Persistence is keyed on the canonical listing URL. Callers go through
``save_if_new``, which performs ``exists_by_url`` then ``insert``. That pair
is not atomic on its own, so two crawls racing on one URL can both pass the
existence check; concrete stores close the race with a uniqueness
constraint on the URL column and treat a conflicting insert as a no-op.
"""

from abc import ABC, abstractmethod

from ..models.listing import ListingRecord


class ListingStore(ABC):
    """Idempotent "insert if not already present" persistence."""

    @abstractmethod
    async def exists_by_url(self, url: str) -> bool:
        """True when a listing with this canonical URL is stored.

        Raises:
            StoreError: If the backend cannot be queried
        """

    @abstractmethod
    async def insert(self, record: ListingRecord) -> bool:
        """Store ``record``.

        Returns:
            True if a row was written, False if the URL was already present

        Raises:
            StoreError: If the backend rejects the write
        """

    async def save_if_new(self, record: ListingRecord) -> bool:
        """Insert ``record`` unless its URL is already stored.

        Returns:
            True if the record was inserted, False if it already existed
        """
        if await self.exists_by_url(record.listing_url):
            return False
        return await self.insert(record)

    async def close(self) -> None:
        """Release backend resources."""
