"""Port for document attachments (PDFs) kept outside the database."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class StoredBlob:
    """Where a stored blob can be fetched from and how to delete it later."""

    url: str
    handle: str
    content_type: str
    size: int


class BlobStore(ABC):

    @abstractmethod
    async def put(self, content: bytes, content_type: str, filename: str = "") -> StoredBlob:
        """Store ``content``. Raises ``DependencyFailureError`` when the store is unavailable."""
        ...

    @abstractmethod
    async def delete(self, handle: str) -> None:
        """Remove a blob. Raises ``EntityNotFoundError`` for an unknown handle."""
        ...
